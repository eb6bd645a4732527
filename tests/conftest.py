"""Shared fixtures: small in-memory screenshots."""

import base64
import io

import pytest
from PIL import Image

from flowaudit.categories import CategoryTable


def make_image_bytes(
    size: tuple[int, int] = (50, 40), color: str = "white", fmt: str = "PNG"
) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_data_uri(
    size: tuple[int, int] = (50, 40), color: str = "white", fmt: str = "PNG"
) -> str:
    media_type = "image/png" if fmt == "PNG" else "image/jpeg"
    payload = base64.b64encode(make_image_bytes(size, color, fmt)).decode("ascii")
    return f"data:{media_type};base64,{payload}"


@pytest.fixture
def png_data_uri() -> str:
    """50x40 white PNG as a data URI."""
    return make_data_uri()


@pytest.fixture
def jpeg_data_uri() -> str:
    return make_data_uri(fmt="JPEG")


@pytest.fixture
def table() -> CategoryTable:
    """Embedded default categories, independent of the working directory."""
    return CategoryTable.defaults()


@pytest.fixture
def image_uri():
    """Factory for data URIs of solid-colour images."""
    return make_data_uri


@pytest.fixture
def png_bytes() -> bytes:
    """Raw bytes of a 50x40 white PNG."""
    return make_image_bytes()
