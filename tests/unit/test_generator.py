import io
from unittest.mock import patch

import pytest
from PIL import Image

from thumbnail_function.errors import ConfigurationError, DecodeError, EncodeError, ValidationError
from thumbnail_function.generator import ThumbnailGenerator
from tests.conftest import make_image_bytes


@pytest.fixture
def generator():
    return ThumbnailGenerator(max_width=150, max_height=150)


def open_result(stream):
    image = Image.open(stream)
    image.load()
    return image


class TestThumbnailGenerator:

    def test_generates_png_within_box(self, generator, landscape_jpeg):
        stream = generator.generate(landscape_jpeg)

        image = open_result(stream)
        assert image.format == "PNG"
        assert image.size == (150, 75)

    def test_portrait_image(self, generator):
        stream = generator.generate(make_image_bytes(size=(500, 1000)))

        assert open_result(stream).size == (75, 150)

    def test_stream_is_positioned_at_start(self, generator, landscape_jpeg):
        stream = generator.generate(landscape_jpeg)

        assert stream.tell() == 0
        assert stream.read(8) == b"\x89PNG\r\n\x1a\n"

    def test_accepts_binary_stream(self, generator, landscape_jpeg):
        stream = generator.generate(io.BytesIO(landscape_jpeg))

        assert open_result(stream).size == (150, 75)

    def test_returns_spec(self, generator, landscape_jpeg):
        _, spec = generator.generate_with_spec(landscape_jpeg)

        assert (spec.source.width, spec.source.height) == (1000, 500)
        assert (spec.target.width, spec.target.height) == (150, 75)
        assert spec.box == generator.box

    def test_keeps_alpha_channel(self, generator):
        source = make_image_bytes(size=(400, 200), mode="RGBA", color=(0, 255, 0, 0), fmt="PNG")

        image = open_result(generator.generate(source))

        assert image.mode == "RGBA"
        assert image.getpixel((10, 10))[3] == 0

    def test_palette_transparency_becomes_rgba(self, generator):
        palette = Image.new("P", (300, 300), 0)
        buffer = io.BytesIO()
        palette.save(buffer, format="GIF", transparency=0)

        image = open_result(generator.generate(buffer.getvalue()))

        assert image.mode == "RGBA"
        assert image.size == (150, 150)

    def test_cmyk_is_converted_to_rgb(self, generator):
        source = make_image_bytes(size=(300, 600), mode="CMYK", color=(0, 0, 0, 0))

        image = open_result(generator.generate(source))

        assert image.mode == "RGB"
        assert image.size == (75, 150)

    def test_same_input_gives_identical_output(self, generator, landscape_jpeg):
        first = generator.generate(landscape_jpeg).getvalue()
        second = generator.generate(landscape_jpeg).getvalue()

        assert first == second

    @pytest.mark.parametrize("source", [b"", None, io.BytesIO(b"")])
    def test_empty_input_raises_validation_error(self, generator, source):
        with pytest.raises(ValidationError, match="cannot be null or empty"):
            generator.generate(source)

    def test_corrupt_input_raises_decode_error(self, generator):
        with pytest.raises(DecodeError):
            generator.generate(b"definitely not an image")

    def test_truncated_input_raises_decode_error(self, generator, landscape_jpeg):
        with pytest.raises(DecodeError):
            generator.generate(landscape_jpeg[:200])

    def test_encode_failure_raises_encode_error(self, generator, landscape_jpeg):
        with patch.object(Image.Image, "save", side_effect=OSError("encoder error")):
            with pytest.raises(EncodeError, match="encoder error"):
                generator.generate(landscape_jpeg)

    @pytest.mark.parametrize("width, height", [(0, 150), (150, -5)])
    def test_invalid_box_raises_configuration_error(self, width, height):
        with pytest.raises(ConfigurationError):
            ThumbnailGenerator(max_width=width, max_height=height)
