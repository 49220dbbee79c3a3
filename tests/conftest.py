import io
import os

import pytest

os.environ.setdefault("LOG_FILE", os.devnull)
os.environ.setdefault("WARDROBE_POLL_INTERVAL_SECONDS", "3600")

from PIL import Image  # noqa: E402


class FakeClock:
    """Manually advanced clock usable by the deduplicator and the poller."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, amount: float) -> None:
        self.now += amount


@pytest.fixture
def clock():
    return FakeClock()


def make_image_bytes(fmt: str = "PNG", size=(16, 16), color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG", color=(20, 40, 200))


@pytest.fixture
def make_image():
    return make_image_bytes
