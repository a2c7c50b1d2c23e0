"""Conversion of uploaded files and stored image references to base64 payloads."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
from io import BytesIO
from pathlib import Path

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from wardrobe.errors import ImageReadError

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[^;,]+)?(?:;[^,]*)?,(?P<data>.*)$", re.DOTALL)

logger = logging.getLogger(__name__)


def strip_data_uri(value: str) -> str:
    """Return the payload part of a data URI, or the value itself if it has no prefix."""

    match = DATA_URI_PATTERN.match(value)
    if match:
        return match.group("data")
    return value


def to_data_uri(base64_data: str, mime_type: str = "image/jpeg") -> str:
    """Build a data URI suitable for storage as an image reference."""

    return f"data:{mime_type};base64,{base64_data}"


class ImageEncoder:
    """Reads images from bytes, files, data URIs or URLs and re-encodes them as JPEG base64."""

    def __init__(
        self,
        *,
        max_bytes: int = 10 * 1024 * 1024,
        max_dimension: int = 1536,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._max_bytes = max_bytes
        self._max_dimension = max_dimension
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def encode_bytes(self, data: bytes) -> str:
        """Normalise raw image bytes and return the base64 payload (no data-URI prefix)."""

        if not data:
            raise ImageReadError("图片内容为空")
        if len(data) > self._max_bytes:
            raise ImageReadError(f"图片过大 ({len(data)} bytes)")
        normalised = await asyncio.to_thread(self._normalise, data)
        return base64.b64encode(normalised).decode("ascii")

    async def encode_file(self, path: Path) -> str:
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise ImageReadError(f"无法读取图片文件 {path}") from exc
        return await self.encode_bytes(data)

    async def encode_reference(self, reference: str) -> str:
        """Re-encode a previously stored image reference."""

        if reference.startswith("data:"):
            try:
                data = base64.b64decode(strip_data_uri(reference), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ImageReadError("图片数据已损坏") from exc
            return await self.encode_bytes(data)
        if reference.startswith(("http://", "https://")):
            return await self.encode_bytes(await self._fetch(reference))
        return await self.encode_file(Path(reference.removeprefix("file://")).expanduser())

    async def _fetch(self, url: str) -> bytes:
        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch image %s: %s", url, exc)
            raise ImageReadError(f"无法下载图片 {url}") from exc
        return response.content

    def _normalise(self, data: bytes) -> bytes:
        try:
            with Image.open(BytesIO(data)) as img:
                img = ImageOps.exif_transpose(img)
                if img.mode != "RGB":
                    img = img.convert("RGB")
                img.thumbnail((self._max_dimension, self._max_dimension))
                buffer = BytesIO()
                img.save(buffer, format="JPEG", quality=90)
        except Image.DecompressionBombError as exc:
            raise ImageReadError("图片尺寸过大") from exc
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
            raise ImageReadError("文件不是受支持的图片格式") from exc
        return buffer.getvalue()
