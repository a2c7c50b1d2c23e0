"""Tests for image encoding of uploads and stored references."""

from __future__ import annotations

import base64
from io import BytesIO
from pathlib import Path

import httpx
import pytest
from PIL import Image

from wardrobe.errors import ImageReadError
from wardrobe.imaging.encoder import ImageEncoder, strip_data_uri, to_data_uri

from helpers import make_data_uri, make_image_bytes, make_oversized_png


def _decode(payload: str) -> Image.Image:
    return Image.open(BytesIO(base64.b64decode(payload)))


def test_strip_data_uri() -> None:
    assert strip_data_uri("data:image/jpeg;base64,QUJD") == "QUJD"
    assert strip_data_uri("QUJD") == "QUJD"
    assert to_data_uri("QUJD") == "data:image/jpeg;base64,QUJD"


@pytest.mark.asyncio
async def test_encode_bytes_returns_jpeg_without_prefix() -> None:
    encoder = ImageEncoder()

    payload = await encoder.encode_bytes(make_image_bytes(fmt="PNG"))

    assert not payload.startswith("data:")
    assert _decode(payload).format == "JPEG"


@pytest.mark.asyncio
async def test_encode_bytes_downscales_large_images() -> None:
    encoder = ImageEncoder(max_dimension=16)

    payload = await encoder.encode_bytes(make_image_bytes(size=(64, 32)))

    assert _decode(payload).size == (16, 8)


@pytest.mark.asyncio
async def test_encode_bytes_rejects_non_images() -> None:
    encoder = ImageEncoder()

    with pytest.raises(ImageReadError):
        await encoder.encode_bytes(b"definitely not an image")


@pytest.mark.asyncio
async def test_encode_bytes_rejects_decompression_bombs() -> None:
    encoder = ImageEncoder()

    with pytest.raises(ImageReadError):
        await encoder.encode_bytes(make_oversized_png())


@pytest.mark.asyncio
async def test_encode_bytes_rejects_oversized_input() -> None:
    encoder = ImageEncoder(max_bytes=10)

    with pytest.raises(ImageReadError):
        await encoder.encode_bytes(make_image_bytes())


@pytest.mark.asyncio
async def test_encode_reference_accepts_data_uri() -> None:
    encoder = ImageEncoder()

    payload = await encoder.encode_reference(make_data_uri("green"))

    assert _decode(payload).format == "JPEG"


@pytest.mark.asyncio
async def test_encode_reference_reads_local_file(tmp_path: Path) -> None:
    path = tmp_path / "model.png"
    path.write_bytes(make_image_bytes())
    encoder = ImageEncoder()

    payload = await encoder.encode_reference(str(path))

    assert _decode(payload).format == "JPEG"


@pytest.mark.asyncio
async def test_encode_reference_missing_file(tmp_path: Path) -> None:
    encoder = ImageEncoder()

    with pytest.raises(ImageReadError):
        await encoder.encode_reference(str(tmp_path / "missing.jpg"))


@pytest.mark.asyncio
async def test_encode_reference_fetches_remote_url() -> None:
    image = make_image_bytes(fmt="JPEG")
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=image, headers={"Content-Type": "image/jpeg"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        encoder = ImageEncoder(http_client=http_client)
        payload = await encoder.encode_reference("https://picsum.photos/400/500?random=1")

    assert requested == ["https://picsum.photos/400/500?random=1"]
    assert _decode(payload).format == "JPEG"


@pytest.mark.asyncio
async def test_encode_reference_fetch_failure_raises_image_read_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(404))

    async with httpx.AsyncClient(transport=transport) as http_client:
        encoder = ImageEncoder(http_client=http_client)
        with pytest.raises(ImageReadError):
            await encoder.encode_reference("https://example.test/missing.jpg")
