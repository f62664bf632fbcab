import io
from typing import BinaryIO, Tuple, Union

from aws_lambda_powertools import Logger
from PIL import Image

from thumbnail_function.dimensions import (
    BoundingBox,
    ImageDimensions,
    ThumbnailSpec,
    compute,
)
from thumbnail_function.errors import DecodeError, EncodeError, ValidationError

logger = Logger(child=True)

OUTPUT_FORMAT = "PNG"
OUTPUT_CONTENT_TYPE = "image/png"
RESAMPLE_FILTER = Image.Resampling.LANCZOS

# modes Pillow can resample with LANCZOS and PNG can store as-is
_RESAMPLABLE_MODES = {"L", "LA", "RGB", "RGBA", "I"}

ImageSource = Union[bytes, bytearray, memoryview, BinaryIO]


def _read_source(source_image) -> bytes:
    if source_image is None:
        raise ValidationError("Source image cannot be null or empty.")
    if hasattr(source_image, "read"):
        source_image = source_image.read()
    data = bytes(source_image)
    if not data:
        raise ValidationError("Source image cannot be null or empty.")
    return data


def _prepare_mode(image: Image.Image) -> Image.Image:
    """Convert ``image`` into a mode that resamples without losing alpha."""
    has_alpha = "transparency" in image.info or image.mode in ("LA", "PA", "RGBA", "RGBa", "La")

    if image.mode in _RESAMPLABLE_MODES and "transparency" not in image.info:
        return image
    if image.mode == "1":
        return image.convert("L")
    if image.mode.startswith("I;16"):
        return image.convert("I")
    return image.convert("RGBA" if has_alpha else "RGB")


class ThumbnailGenerator:
    """Resize images into a fixed bounding box and encode them as PNG.

    The generator holds no per-image state and can be shared across events.
    """

    def __init__(self, max_width: int = 150, max_height: int = 150):
        self.box = BoundingBox(max_width=max_width, max_height=max_height)

    def generate(self, source_image: ImageSource) -> io.BytesIO:
        stream, _ = self.generate_with_spec(source_image)
        return stream

    def generate_with_spec(self, source_image: ImageSource) -> Tuple[io.BytesIO, ThumbnailSpec]:
        data = _read_source(source_image)

        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except Image.DecompressionBombError as e:
            raise DecodeError(f"Image is too large to decode safely: {e}") from e
        except (OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Unsupported or corrupt image: {e}") from e

        with image:
            source = ImageDimensions(width=image.width, height=image.height)
            target = compute(source, self.box)
            spec = ThumbnailSpec(box=self.box, source=source, target=target)

            try:
                resized = _prepare_mode(image).resize(
                    (target.width, target.height), resample=RESAMPLE_FILTER
                )
            except (OSError, ValueError) as e:
                raise DecodeError(f"Could not resample {image.mode} image: {e}") from e

        thumbnail_stream = io.BytesIO()
        try:
            resized.save(thumbnail_stream, format=OUTPUT_FORMAT)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Could not encode thumbnail as {OUTPUT_FORMAT}: {e}") from e
        thumbnail_stream.seek(0)

        logger.debug(
            "Thumbnail generated",
            extra={
                "source_size": f"{source.width}x{source.height}",
                "target_size": f"{target.width}x{target.height}",
                "bytes": len(thumbnail_stream.getvalue()),
            },
        )
        return thumbnail_stream, spec
