"""Turn one object-created notification into an uploaded thumbnail.

Every stage hands its result to the next one or returns a
``ProcessingOutcome`` describing where it stopped. ``handle`` is the only
place that catches unexpected exceptions; it always returns normally.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from aws_lambda_powertools import Logger, Tracer
from pydantic import ValidationError as PydanticValidationError

from thumbnail_function.errors import (
    DecodeError,
    EncodeError,
    StorageError,
    ValidationError,
)
from thumbnail_function.generator import OUTPUT_CONTENT_TYPE, ThumbnailGenerator
from thumbnail_function.models import OBJECT_CREATED_EVENT_TYPE, InboundEvent, ObjectCreatedPayload
from thumbnail_function.paths import BlobLocation, destination_blob, has_folder_token, source_blob
from thumbnail_function.storage import BlobStore

logger = Logger(child=True)
tracer = Tracer()


class ProcessingState(str, Enum):
    IGNORED = "Ignored"
    PARSE_FAILED = "ParseFailed"
    DOWNLOAD_FAILED = "DownloadFailed"
    GENERATE_FAILED = "GenerateFailed"
    UPLOAD_FAILED = "UploadFailed"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass(frozen=True)
class ProcessingOutcome:
    state: ProcessingState
    subject: Optional[str] = None
    source: Optional[BlobLocation] = None
    destination: Optional[BlobLocation] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == ProcessingState.COMPLETED

    def as_dict(self) -> dict:
        result = {"state": self.state.value, "subject": self.subject}
        if self.source:
            result["source"] = f"{self.source.container}/{self.source.object_name}"
        if self.destination:
            result["destination"] = f"{self.destination.container}/{self.destination.object_name}"
        if self.error:
            result["error"] = self.error
        return result


async def _bounded(awaitable, deadline: Optional[float]):
    """Await until the loop-clock ``deadline`` shared by every stage of an event."""
    if deadline is None:
        return await awaitable
    remaining = deadline - asyncio.get_running_loop().time()
    if remaining <= 0:
        awaitable.close()
        raise asyncio.TimeoutError
    return await asyncio.wait_for(awaitable, timeout=remaining)


class ThumbnailOrchestrator:
    def __init__(
        self,
        store: BlobStore,
        generator: ThumbnailGenerator,
        originals_folder: str,
        thumbnails_folder: str,
        extension: str = ".png",
    ):
        self.store = store
        self.generator = generator
        self.originals_folder = originals_folder
        self.thumbnails_folder = thumbnails_folder
        self.extension = extension

    async def handle(self, event: Any, timeout: Optional[float] = None) -> ProcessingOutcome:
        """Process one event. Never raises, except on task cancellation."""
        subject = event.get("subject") if isinstance(event, Mapping) else None
        logger.info("Received event", extra={"subject": subject})

        try:
            deadline = None if timeout is None else asyncio.get_running_loop().time() + timeout
            outcome = await self._process(event, subject, deadline)
        except Exception as e:
            logger.exception(
                "An error occurred while processing the image",
                extra={"subject": subject, "error": str(e)},
            )
            return ProcessingOutcome(ProcessingState.FAILED, subject=subject, error=str(e))

        if outcome.succeeded:
            logger.info("Thumbnail created and uploaded successfully", extra=outcome.as_dict())
        elif outcome.state not in (ProcessingState.IGNORED, ProcessingState.PARSE_FAILED):
            logger.error("Thumbnail processing failed", extra=outcome.as_dict())
        return outcome

    @tracer.capture_method
    async def _process(self, event: Any, subject: Optional[str], deadline: Optional[float]) -> ProcessingOutcome:
        event_type = event.get("eventType") if isinstance(event, Mapping) else None
        if event_type != OBJECT_CREATED_EVENT_TYPE:
            logger.warning("Unhandled event type", extra={"subject": subject, "event_type": event_type})
            return ProcessingOutcome(ProcessingState.IGNORED, subject=subject)

        parsed = self._parse(event, subject)
        if isinstance(parsed, ProcessingOutcome):
            return parsed
        payload, source = parsed

        source_bytes = await self._download(source, subject, deadline)
        if isinstance(source_bytes, ProcessingOutcome):
            return source_bytes

        thumbnail = await self._generate(source_bytes, source, subject)
        if isinstance(thumbnail, ProcessingOutcome):
            return thumbnail

        return await self._upload(payload.url, thumbnail, source, subject, deadline)

    def _parse(
        self, event: Mapping, subject: Optional[str]
    ) -> Union[ProcessingOutcome, tuple[ObjectCreatedPayload, BlobLocation]]:
        try:
            inbound = InboundEvent.model_validate(event)
            payload = inbound.payload()
            source = source_blob(payload.url, self.originals_folder)
        except (PydanticValidationError, ValidationError) as e:
            logger.warning(
                "Can't parse event data into an object-created payload",
                extra={"subject": subject, "error": str(e)},
            )
            return ProcessingOutcome(ProcessingState.PARSE_FAILED, subject=subject, error=str(e))

        logger.info(
            "Object created",
            extra={
                "subject": subject,
                "url": payload.url,
                "content_type": payload.content_type,
                "content_length": payload.content_length,
                "etag": payload.etag,
                "sequencer": payload.sequencer,
            },
        )
        if not has_folder_token(payload.url, self.originals_folder):
            logger.warning(
                "Location does not contain the originals folder; keeping its path",
                extra={"subject": subject, "url": payload.url, "originals_folder": self.originals_folder},
            )
        return payload, source

    async def _download(
        self, source: BlobLocation, subject: Optional[str], deadline: Optional[float]
    ) -> Union[ProcessingOutcome, bytes]:
        try:
            return await _bounded(self.store.download(source.container, source.object_name), deadline)
        except asyncio.TimeoutError:
            error = StorageError("Download timed out before the event deadline", transient=True)
        except StorageError as e:
            error = e

        return ProcessingOutcome(
            ProcessingState.DOWNLOAD_FAILED,
            subject=subject,
            source=source,
            error=f"{error} (transient={error.transient})",
        )

    async def _generate(
        self, source_bytes: bytes, source: BlobLocation, subject: Optional[str]
    ) -> Union[ProcessingOutcome, bytes]:
        try:
            stream, spec = await asyncio.to_thread(self.generator.generate_with_spec, source_bytes)
        except (ValidationError, DecodeError, EncodeError) as e:
            return ProcessingOutcome(
                ProcessingState.GENERATE_FAILED, subject=subject, source=source, error=str(e)
            )

        logger.info(
            "Thumbnail generated",
            extra={
                "subject": subject,
                "source_size": f"{spec.source.width}x{spec.source.height}",
                "target_size": f"{spec.target.width}x{spec.target.height}",
            },
        )
        return stream.getvalue()

    async def _upload(
        self,
        location: str,
        thumbnail: bytes,
        source: BlobLocation,
        subject: Optional[str],
        deadline: Optional[float],
    ) -> ProcessingOutcome:
        destination = destination_blob(location, self.originals_folder, self.thumbnails_folder, self.extension)

        try:
            await _bounded(
                self.store.upload(
                    destination.container,
                    destination.object_name,
                    thumbnail,
                    overwrite=True,
                    content_type=OUTPUT_CONTENT_TYPE,
                ),
                deadline,
            )
        except asyncio.TimeoutError:
            error = StorageError("Upload timed out before the event deadline", transient=True)
        except StorageError as e:
            error = e
        else:
            return ProcessingOutcome(
                ProcessingState.COMPLETED, subject=subject, source=source, destination=destination
            )

        return ProcessingOutcome(
            ProcessingState.UPLOAD_FAILED,
            subject=subject,
            source=source,
            destination=destination,
            error=f"{error} (transient={error.transient})",
        )
