import io

import pytest
from PIL import Image

from conftest import is_valid_webp, make_png
from media_converter.conversion.image import PNG_SIGNATURE, convert_png_to_webp, is_valid_png
from media_converter.errors import ProcessingError


@pytest.mark.parametrize(
    "data",
    [
        PNG_SIGNATURE,
        PNG_SIGNATURE + b"anything after the signature",
        b"\x89PNG\r\n\x1a\n\x00\x00",
    ],
)
def test_is_valid_png_accepts_signature_prefix(data):
    assert is_valid_png(data) is True


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"\x89PNG",
        PNG_SIGNATURE[:7],
        b"GIF89a\x00\x00\x00\x00",
        b"\x89png\r\n\x1a\n",
        b"RIFF\x00\x00\x00\x00WEBPVP8 ",
    ],
)
def test_is_valid_png_rejects_short_or_mismatched(data):
    assert is_valid_png(data) is False


def test_real_png_passes_validation(red_png):
    assert is_valid_png(red_png)


def test_convert_red_png_produces_webp(red_png):
    webp = convert_png_to_webp(red_png)

    assert len(webp) > 0
    assert is_valid_webp(webp)
    with Image.open(io.BytesIO(webp)) as img:
        assert img.format == "WEBP"
        assert img.size == (10, 10)


def test_convert_drops_alpha_channel():
    png = make_png(size=(8, 6), mode="RGBA", color=(0, 128, 255, 0))

    webp = convert_png_to_webp(png)

    with Image.open(io.BytesIO(webp)) as img:
        assert img.mode == "RGB"
        assert img.size == (8, 6)


def test_convert_palette_and_grayscale_pngs():
    for mode, color in (("P", 3), ("L", 200), ("LA", (200, 128))):
        webp = convert_png_to_webp(make_png(mode=mode, color=color))
        assert is_valid_webp(webp)


def test_truncated_png_raises_processing_error(red_png):
    with pytest.raises(ProcessingError) as exc_info:
        convert_png_to_webp(red_png[: len(red_png) // 2])
    assert "Failed to decode PNG" in exc_info.value.message


def test_signature_with_garbage_body_raises_processing_error():
    with pytest.raises(ProcessingError):
        convert_png_to_webp(PNG_SIGNATURE + b"\x00" * 64)
