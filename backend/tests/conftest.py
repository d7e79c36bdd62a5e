import io

import pytest
from PIL import Image

from media_converter.api.routes import get_conversion_service
from media_converter.conversion.service import ConversionService
from media_converter.main import create_app


def make_png(size=(10, 10), mode="RGB", color=(255, 0, 0)) -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


def is_valid_webp(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP"


class FakeTranscoder:
    """Stands in for ffmpeg: records calls and returns canned bytes or raises."""

    def __init__(self, output=b"\x1a\x45\xdf\xa3fake-webm", error=None):
        self.output = output
        self.error = error
        self.calls = []

    def encode(self, data, quality, audio_bitrate):
        self.calls.append((data, quality, audio_bitrate))
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def red_png() -> bytes:
    return make_png()


@pytest.fixture
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def service(fake_transcoder):
    svc = ConversionService(max_workers=2, transcoder=fake_transcoder)
    yield svc
    svc.shutdown()


@pytest.fixture
def client(service):
    from fastapi.testclient import TestClient

    app = create_app()
    app.dependency_overrides[get_conversion_service] = lambda: service
    with TestClient(app) as c:
        yield c
