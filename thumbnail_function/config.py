from typing import Optional

from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from thumbnail_function.dimensions import BoundingBox
from thumbnail_function.errors import ConfigurationError


class Settings(BaseSettings):
    """Thumbnail function configuration, read from the environment"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Storage folders (S3 bucket names, also used as URI path tokens)
    ORIGINALS_FOLDER: str = Field(min_length=1)
    THUMBNAILS_FOLDER: str = Field(min_length=1)

    # Thumbnail
    THUMBNAIL_MAX_WIDTH: int = 150
    THUMBNAIL_MAX_HEIGHT: int = 150
    THUMBNAIL_EXTENSION: str = ".png"

    # AWS S3
    AWS_REGION: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None
    S3_CONNECT_TIMEOUT: float = 5.0
    S3_READ_TIMEOUT: float = 30.0

    # time kept back from the Lambda deadline for logging
    TIMEOUT_MARGIN_MS: int = 1000

    @property
    def bounding_box(self) -> BoundingBox:
        return BoundingBox(max_width=self.THUMBNAIL_MAX_WIDTH, max_height=self.THUMBNAIL_MAX_HEIGHT)


def load_settings(**overrides) -> Settings:
    """Load and validate settings, raising ConfigurationError on any problem."""
    try:
        settings = Settings(**overrides)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if settings.ORIGINALS_FOLDER == settings.THUMBNAILS_FOLDER:
        raise ConfigurationError("ORIGINALS_FOLDER and THUMBNAILS_FOLDER must differ")

    # raises ConfigurationError for non-positive bounds
    settings.bounding_box
    return settings
