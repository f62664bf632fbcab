import asyncio
from typing import Optional

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from thumbnail_function.config import Settings, load_settings
from thumbnail_function.generator import ThumbnailGenerator
from thumbnail_function.orchestrator import ThumbnailOrchestrator
from thumbnail_function.storage import BlobStore, S3BlobStore, create_s3_client

logger = Logger()
tracer = Tracer()


def build_orchestrator(settings: Settings, store: Optional[BlobStore] = None) -> ThumbnailOrchestrator:
    """Wire the collaborators once per execution environment."""
    if store is None:
        store = S3BlobStore(
            create_s3_client(
                region=settings.AWS_REGION,
                endpoint_url=settings.S3_ENDPOINT_URL,
                connect_timeout=settings.S3_CONNECT_TIMEOUT,
                read_timeout=settings.S3_READ_TIMEOUT,
            )
        )
    box = settings.bounding_box
    return ThumbnailOrchestrator(
        store=store,
        generator=ThumbnailGenerator(max_width=box.max_width, max_height=box.max_height),
        originals_folder=settings.ORIGINALS_FOLDER,
        thumbnails_folder=settings.THUMBNAILS_FOLDER,
        extension=settings.THUMBNAIL_EXTENSION,
    )


# ConfigurationError here fails the cold start, so no event is accepted
settings = load_settings()
orchestrator = build_orchestrator(settings)


def remaining_seconds(context: LambdaContext, margin_ms: int) -> Optional[float]:
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if get_remaining is None:
        return None
    return max(get_remaining() - margin_ms, 100) / 1000


@logger.inject_lambda_context
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    timeout = remaining_seconds(context, settings.TIMEOUT_MARGIN_MS)
    outcome = asyncio.run(orchestrator.handle(event, timeout=timeout))
    return outcome.as_dict()
