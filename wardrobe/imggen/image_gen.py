"""Try-on image generation through the AITunnel image model."""

from __future__ import annotations

import logging
from typing import Sequence

from wardrobe.api.aitunnel_client import AITunnelClient, AITunnelRequestError
from wardrobe.errors import GenerationError, InvalidInputError
from wardrobe.imggen.prompt_builder import TryOnPromptBuilder

logger = logging.getLogger(__name__)


class TryOnGenerator:
    """Sends one subject image and its garments to the image model."""

    def __init__(self, client: AITunnelClient, prompt_builder: TryOnPromptBuilder | None = None) -> None:
        self._client = client
        self._prompt_builder = prompt_builder or TryOnPromptBuilder()

    async def generate(self, subject_base64: str, garments_base64: Sequence[str]) -> str:
        """
        Generate a composite image and return it as a data URI.

        Raises ``InvalidInputError`` without calling the service when no garment is given.
        """

        if not garments_base64:
            raise InvalidInputError("至少需要一件衣服")

        settings = self._client.settings
        parts = self._prompt_builder.build(subject_base64, garments_base64)
        try:
            response = await self._client.chat_completion(
                [{"role": "user", "content": parts}],
                model=settings.aitunnel_image_model,
                modalities=["image", "text"],
                image_config={
                    "aspect_ratio": settings.image_aspect_ratio,
                    "image_size": settings.image_size,
                },
            )
        except AITunnelRequestError as exc:
            logger.error("Try-on generation request failed: %s", exc)
            raise GenerationError("生成试穿效果失败，可能是API权限问题") from exc

        image_url = AITunnelClient.image_payload_to_result(response)
        if not image_url:
            raise GenerationError("模型没有返回图片")
        return image_url
