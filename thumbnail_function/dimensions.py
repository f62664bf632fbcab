import math
from dataclasses import dataclass

from thumbnail_function.errors import ConfigurationError, ValidationError


@dataclass(frozen=True)
class BoundingBox:
    """Maximum (width, height) a thumbnail may occupy"""

    max_width: int
    max_height: int

    def __post_init__(self):
        if self.max_width <= 0 or self.max_height <= 0:
            raise ConfigurationError(
                f"Max dimensions must be positive integers, got {self.max_width}x{self.max_height}"
            )


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValidationError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class ThumbnailSpec:
    """Target size computed for one source image"""

    box: BoundingBox
    source: ImageDimensions
    target: ImageDimensions


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute(original: ImageDimensions, box: BoundingBox) -> ImageDimensions:
    """Fit ``original`` inside ``box`` keeping its aspect ratio.

    Landscape images (strictly wider than tall) take the full box width,
    portrait and square images take the full box height. A dimension that
    rounds to 0 is clamped to 1.
    """
    aspect_ratio = original.aspect_ratio

    if original.width > original.height:
        width = box.max_width
        height = _round_half_up(box.max_width / aspect_ratio)
    else:
        height = box.max_height
        width = _round_half_up(box.max_height * aspect_ratio)

    # rounding can overshoot the box by one pixel
    width = max(1, min(width, box.max_width))
    height = max(1, min(height, box.max_height))

    return ImageDimensions(width=width, height=height)
