import sys
import os
import io
import uuid
from pathlib import Path

import pytest
from PIL import Image

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set environment variables for testing
os.environ.setdefault('AWS_DEFAULT_REGION', 'eu-west-1')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('POWERTOOLS_SERVICE_NAME', 'image-thumbnail-test')
os.environ.setdefault('POWERTOOLS_TRACE_DISABLED', '1')
os.environ.setdefault('ORIGINALS_FOLDER', 'originals')
os.environ.setdefault('THUMBNAILS_FOLDER', 'thumbnails')

from thumbnail_function.errors import StorageError  # noqa: E402


def make_image_bytes(size=(1000, 500), mode="RGB", color="red", fmt="JPEG", **save_kwargs) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue()


def make_event(url="https://s3.amazonaws.com/originals/foo/photo.jpg", event_type="Object Created", **data):
    payload = {
        "api": "PutObject",
        "requestId": str(uuid.uuid4()),
        "etag": "0x8D4BCC2E4835CD0",
        "contentType": "image/jpeg",
        "contentLength": 524288,
        "blobType": "BlockBlob",
        "sequencer": "00000000000004420000000000028963",
    }
    if url is not None:
        payload["url"] = url
    payload.update(data)
    return {
        "id": str(uuid.uuid4()),
        "topic": "aws.s3",
        "subject": "originals/foo/photo.jpg",
        "eventType": event_type,
        "eventTime": "2024-05-01T12:00:00Z",
        "data": payload,
    }


class InMemoryBlobStore:
    """BlobStore fake that records every call"""

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.downloads = []
        self.uploads = []

    async def download(self, container, object_name):
        self.downloads.append((container, object_name))
        try:
            return self.objects[(container, object_name)]
        except KeyError:
            raise StorageError(f"{container}/{object_name} not found", transient=False)

    async def upload(self, container, object_name, data, overwrite=True, content_type=None):
        self.uploads.append(
            {
                "container": container,
                "object_name": object_name,
                "data": data,
                "overwrite": overwrite,
                "content_type": content_type,
            }
        )
        self.objects[(container, object_name)] = data


@pytest.fixture
def landscape_jpeg():
    return make_image_bytes(size=(1000, 500))


@pytest.fixture
def blob_store(landscape_jpeg):
    return InMemoryBlobStore({("originals", "photo.jpg"): landscape_jpeg})


@pytest.fixture
def lambda_context():
    class MockContext:
        def __init__(self):
            self.function_name = "image_thumbnail"
            self.function_version = "$LATEST"
            self.invoked_function_arn = "arn:aws:lambda:eu-west-1:123456789012:function:image_thumbnail"
            self.memory_limit_in_mb = 512
            self.log_group_name = "/aws/lambda/image_thumbnail"
            self.log_stream_name = "2024/05/01/[$LATEST]test"
            self.aws_request_id = str(uuid.uuid4())

        def get_remaining_time_in_millis(self):
            return 30000

    return MockContext()
