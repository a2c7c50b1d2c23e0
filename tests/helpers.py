"""Builders for test images and canned AI responses."""

from __future__ import annotations

import base64
import json
import struct
import zlib
from io import BytesIO
from typing import Any

from PIL import Image

from wardrobe.imaging.encoder import to_data_uri


def make_image_bytes(color: str = "red", size: tuple[int, int] = (8, 8), fmt: str = "PNG") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_oversized_png(width: int = 30000, height: int = 30000) -> bytes:
    """A 1x1 PNG whose IHDR claims ``width``x``height`` pixels."""

    data = bytearray(make_image_bytes(size=(1, 1), fmt="PNG"))
    data[16:24] = struct.pack(">II", width, height)
    data[29:33] = struct.pack(">I", zlib.crc32(bytes(data[12:29])))
    return bytes(data)


def make_data_uri(color: str = "red") -> str:
    return to_data_uri(base64.b64encode(make_image_bytes(color, fmt="JPEG")).decode("ascii"))


def chat_response(content: Any) -> dict[str, Any]:
    """Wrap content the way the chat completions endpoint does."""

    if not isinstance(content, str):
        content = json.dumps(content, ensure_ascii=False)
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def image_response(url: str = "data:image/png;base64,R0VORVJBVEVE") -> dict[str, Any]:
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": "",
                    "images": [{"type": "image_url", "image_url": {"url": url}}],
                }
            }
        ]
    }
