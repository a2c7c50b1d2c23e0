"""Clothing classification through the multimodal chat model."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from wardrobe.api.aitunnel_client import AITunnelClient, AITunnelRequestError, image_part, text_part
from wardrobe.errors import ClassificationError
from wardrobe.storage.models import Category

CLASSIFICATION_INSTRUCTION = (
    "Analyze this clothing item. Identify the category, color, a short description, and style tags."
)

DEFAULT_COLOR = "Unknown"
DEFAULT_DESCRIPTION = "Uploaded Item"

CLASSIFICATION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "category": {"type": "string", "enum": Category.labels()},
        "color": {"type": "string"},
        "description": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["category", "color", "description", "tags"],
    "additionalProperties": False,
}

logger = logging.getLogger(__name__)


class ClothingAnalysis(BaseModel):
    """Structured classification result with defaults for omitted fields."""

    category: Category = Category.UNSPECIFIED
    color: str = DEFAULT_COLOR
    description: str = DEFAULT_DESCRIPTION
    tags: list[str] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Category:
        return Category.from_label(value)

    @field_validator("color", mode="before")
    @classmethod
    def _coerce_color(cls, value: Any) -> str:
        return str(value).strip() if value else DEFAULT_COLOR

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_description(cls, value: Any) -> str:
        return str(value).strip() if value else DEFAULT_DESCRIPTION

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> list[str]:
        if isinstance(value, list):
            return [str(tag) for tag in value if tag is not None and str(tag).strip()]
        if isinstance(value, str) and value.strip():
            return [value.strip()]
        return []


class ClothingClassifier:
    """Sends one encoded garment photo to the chat model and parses the JSON answer."""

    def __init__(self, client: AITunnelClient) -> None:
        self._client = client

    def build_messages(self, image_base64: str) -> list[dict[str, Any]]:
        return [
            {
                "role": "user",
                "content": [image_part(image_base64), text_part(CLASSIFICATION_INSTRUCTION)],
            }
        ]

    async def classify(self, image_base64: str) -> ClothingAnalysis:
        """Return category, color, description and tags for the garment image."""

        try:
            response = await self._client.chat_completion(
                self.build_messages(image_base64),
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "clothing_analysis",
                        "strict": True,
                        "schema": CLASSIFICATION_SCHEMA,
                    },
                },
            )
        except AITunnelRequestError as exc:
            logger.error("Clothing classification request failed: %s", exc)
            raise ClassificationError("衣物识别服务暂时不可用") from exc

        content = AITunnelClient.first_choice_content(response)
        if content is None:
            logger.warning("Classification response carried no message content")
            raise ClassificationError("无法解析衣物识别结果")
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse classification JSON: %s", content)
            raise ClassificationError("无法解析衣物识别结果") from exc
        if not isinstance(parsed, dict):
            raise ClassificationError("无法解析衣物识别结果")

        try:
            return ClothingAnalysis.model_validate(parsed)
        except ValidationError as exc:
            raise ClassificationError("无法解析衣物识别结果") from exc
