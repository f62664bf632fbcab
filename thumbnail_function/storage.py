import asyncio
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional, Protocol

import boto3
from aws_lambda_powertools import Logger
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
)

from thumbnail_function.errors import StorageError

logger = Logger(child=True)

# S3 error codes that will not succeed on a retry
PERMANENT_ERROR_CODES = {
    "403",
    "404",
    "AccessDenied",
    "InvalidBucketName",
    "NoSuchBucket",
    "NoSuchKey",
    "PreconditionFailed",
}


class BlobStore(Protocol):
    async def download(self, container: str, object_name: str) -> bytes:
        ...

    async def upload(
        self,
        container: str,
        object_name: str,
        data: bytes,
        overwrite: bool = True,
        content_type: Optional[str] = None,
    ) -> None:
        ...


def _storage_error(action: str, container: str, object_name: str, exc: Exception) -> StorageError:
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        transient = code not in PERMANENT_ERROR_CODES
        message = f"{action} s3://{container}/{object_name} failed ({code}): {exc}"
    else:
        # connection failures and timeouts
        transient = isinstance(exc, (BotoConnectionError, HTTPClientError))
        message = f"{action} s3://{container}/{object_name} failed: {exc}"
    return StorageError(message, transient=transient)


def create_s3_client(
    region: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    connect_timeout: float = 5.0,
    read_timeout: float = 30.0,
):
    config = Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"mode": "standard", "max_attempts": 1},
    )
    return boto3.client("s3", region_name=region, endpoint_url=endpoint_url, config=config)


class S3BlobStore:
    """BlobStore backed by S3. A container is a bucket.

    boto3 is blocking, so each call runs on the store's own thread pool.
    ``asyncio.run`` only joins the default executor, so a call that was
    timed out does not hold the invocation open while its socket hangs.
    """

    def __init__(self, s3_client=None, executor: Optional[Executor] = None):
        self.s3_client = s3_client or create_s3_client()
        self.executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="s3-blob-store")

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, func, *args)

    def _get_object(self, container: str, object_name: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=container, Key=object_name)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise _storage_error("Download", container, object_name, e) from e

    def _put_object(
        self,
        container: str,
        object_name: str,
        data: bytes,
        overwrite: bool,
        content_type: Optional[str],
    ) -> None:
        params = {"Bucket": container, "Key": object_name, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        if not overwrite:
            params["IfNoneMatch"] = "*"

        try:
            self.s3_client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise _storage_error("Upload", container, object_name, e) from e

    async def download(self, container: str, object_name: str) -> bytes:
        logger.debug("Downloading object", extra={"container": container, "object_name": object_name})
        return await self._run(self._get_object, container, object_name)

    async def upload(
        self,
        container: str,
        object_name: str,
        data: bytes,
        overwrite: bool = True,
        content_type: Optional[str] = None,
    ) -> None:
        logger.debug(
            "Uploading object",
            extra={"container": container, "object_name": object_name, "bytes": len(data)},
        )
        await self._run(self._put_object, container, object_name, data, overwrite, content_type)
