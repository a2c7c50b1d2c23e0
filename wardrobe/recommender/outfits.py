"""Outfit recommendations generated from the wardrobe inventory."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from wardrobe.api.aitunnel_client import AITunnelClient, AITunnelRequestError
from wardrobe.errors import InvalidInputError, RecommendationError
from wardrobe.storage.models import ClothingItem, OutfitRecommendation
from wardrobe.storage.repository import new_id

OUTFIT_ITEM_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "items": {"type": "array", "items": {"type": "string"}},
        "relatedItemIds": {
            "type": "array",
            "items": {"type": "string"},
            "description": "The exact IDs of the items from the inventory used in this outfit",
        },
        "reasoning": {"type": "string"},
    },
    "required": ["title", "description", "items", "relatedItemIds", "reasoning"],
    "additionalProperties": False,
}

RECOMMENDATION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"outfits": {"type": "array", "items": OUTFIT_ITEM_SCHEMA}},
    "required": ["outfits"],
    "additionalProperties": False,
}

_SEASONS = {
    12: "winter", 1: "winter", 2: "winter",
    3: "spring", 4: "spring", 5: "spring",
    6: "summer", 7: "summer", 8: "summer",
    9: "autumn", 10: "autumn", 11: "autumn",
}

logger = logging.getLogger(__name__)


class OutfitPayload(BaseModel):
    """One outfit as returned by the model."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    description: str = ""
    items: list[str] = Field(default_factory=list)
    related_item_ids: list[str] = Field(default_factory=list, alias="relatedItemIds")
    reasoning: str = ""

    @field_validator("items", "related_item_ids", mode="before")
    @classmethod
    def _as_strings(cls, value: Any) -> list[str]:
        if isinstance(value, list):
            return [str(entry) for entry in value if entry is not None]
        return []

    def to_recommendation(self) -> OutfitRecommendation:
        return OutfitRecommendation(
            id=new_id(),
            title=self.title,
            description=self.description,
            items=tuple(self.items),
            related_item_ids=tuple(self.related_item_ids),
            reasoning=self.reasoning,
        )


def current_season(today: date | None = None) -> str:
    return _SEASONS[(today or date.today()).month]


def build_inventory(clothes: Sequence[ClothingItem]) -> str:
    """Return one ``ID: <id> | <category>: <description> (<color>)`` line per item."""

    return "\n".join(
        f"ID: {item.id} | {item.category.value}: {item.description} ({item.color})" for item in clothes
    )


class OutfitRecommender:
    """Asks the chat model for outfits that cite inventory ids."""

    def __init__(self, client: AITunnelClient, *, count: int = 3) -> None:
        self._client = client
        self._count = count

    def build_prompt(self, clothes: Sequence[ClothingItem], *, season: str | None = None) -> str:
        return (
            f"Based on the following wardrobe inventory, suggest {self._count} stylish and trendy outfits "
            f"suitable for the current season ({season or current_season()}).\n"
            "Return the specific IDs of the items used in the 'relatedItemIds' field.\n\n"
            f"Inventory:\n{build_inventory(clothes)}\n"
        )

    async def recommend(self, clothes: Sequence[ClothingItem]) -> list[OutfitRecommendation]:
        """Return outfit suggestions; cited ids are not checked against the inventory here."""

        if not clothes:
            raise InvalidInputError("衣橱为空，请先添加衣服")

        messages = [{"role": "user", "content": self.build_prompt(clothes)}]
        try:
            response = await self._client.chat_completion(
                messages,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "outfit_recommendations",
                        "strict": True,
                        "schema": RECOMMENDATION_SCHEMA,
                    },
                },
            )
        except AITunnelRequestError as exc:
            logger.error("Recommendation request failed: %s", exc)
            raise RecommendationError("推荐服务暂时不可用，请稍后重试") from exc

        content = AITunnelClient.first_choice_content(response)
        if not content:
            logger.warning("Recommendation response carried no message content")
            raise RecommendationError("无法解析推荐结果")
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse recommendation JSON: %s", content)
            raise RecommendationError("无法解析推荐结果") from exc

        if isinstance(parsed, dict):
            parsed = parsed.get("outfits")
        if not isinstance(parsed, list) or not all(isinstance(entry, dict) for entry in parsed):
            raise RecommendationError("无法解析推荐结果")

        try:
            outfits = [OutfitPayload.model_validate(entry) for entry in parsed]
        except ValidationError as exc:
            raise RecommendationError("无法解析推荐结果") from exc
        return [outfit.to_recommendation() for outfit in outfits]
