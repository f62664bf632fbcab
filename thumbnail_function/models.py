import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# EventBridge detail-type of S3 object-created notifications
OBJECT_CREATED_EVENT_TYPE = "Object Created"


class ObjectCreatedPayload(BaseModel):
    """Details of the object that was created. Only ``url`` is required."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api: Optional[str] = None
    client_request_id: Optional[str] = Field(default=None, alias="clientRequestId")
    request_id: Optional[str] = Field(default=None, alias="requestId")
    etag: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")
    content_length: Optional[int] = Field(default=None, alias="contentLength", ge=0)
    blob_type: Optional[str] = Field(default=None, alias="blobType")
    url: str = Field(min_length=1)
    sequencer: Optional[str] = None

    @field_validator("url")
    @classmethod
    def url_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("url must not be blank")
        return value.strip()


class InboundEvent(BaseModel):
    """One notification as delivered to the function"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    topic: Optional[str] = None
    subject: Optional[str] = None
    event_type: Optional[str] = Field(default=None, alias="eventType")
    event_time: Optional[str] = Field(default=None, alias="eventTime")
    data: Optional[Any] = None

    @field_validator("data", mode="before")
    @classmethod
    def decode_json_data(cls, value):
        # some transports deliver the payload as a JSON string
        if isinstance(value, (str, bytes, bytearray)):
            return json.loads(value)
        return value

    @property
    def is_object_created(self) -> bool:
        return self.event_type == OBJECT_CREATED_EVENT_TYPE

    def payload(self) -> ObjectCreatedPayload:
        return ObjectCreatedPayload.model_validate(self.data)
