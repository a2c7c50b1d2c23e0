"""In-memory collections owned by the wardrobe orchestrator."""

from __future__ import annotations

import dataclasses
import time
import uuid
from typing import Iterable, Sequence

from wardrobe.errors import InvalidInputError
from wardrobe.storage.models import Category, ClothingItem, ModelProfile, OutfitRecommendation

DEFAULT_MODEL_NAME = "默认模特"
STALE_RECOMMENDATION = "推荐列表已更新，请重新生成效果图"


def new_id() -> str:
    return uuid.uuid4().hex


class WardrobeState:
    """Insertion-ordered collections replaced as whole values on every change.

    Readers always receive tuples, so a caller holding a previous snapshot never
    observes a partially updated entity.
    """

    def __init__(self) -> None:
        self._clothes: tuple[ClothingItem, ...] = ()
        self._models: tuple[ModelProfile, ...] = ()
        self._recommendations: tuple[OutfitRecommendation, ...] = ()
        self._last_timestamp = 0

    @property
    def clothes(self) -> tuple[ClothingItem, ...]:
        return self._clothes

    @property
    def models(self) -> tuple[ModelProfile, ...]:
        return self._models

    @property
    def recommendations(self) -> tuple[OutfitRecommendation, ...]:
        return self._recommendations

    def next_timestamp(self) -> int:
        """Return epoch milliseconds, strictly greater than any previous value."""

        now = time.time_ns() // 1_000_000
        self._last_timestamp = max(now, self._last_timestamp + 1)
        return self._last_timestamp

    def add_item(self, item: ClothingItem) -> ClothingItem:
        if any(existing.id == item.id for existing in self._clothes):
            raise InvalidInputError(f"Duplicate clothing id {item.id}")
        self._clothes = (*self._clothes, item)
        return item

    def remove_item(self, item_id: str) -> ClothingItem:
        item = self.get_item(item_id)
        if item is None:
            raise InvalidInputError("找不到这件衣服")
        self._clothes = tuple(existing for existing in self._clothes if existing.id != item_id)
        return item

    def get_item(self, item_id: str) -> ClothingItem | None:
        return next((item for item in self._clothes if item.id == item_id), None)

    def find_items(self, item_ids: Iterable[str]) -> list[ClothingItem]:
        """Return known items in collection order; unknown ids are skipped."""

        wanted = set(item_ids)
        return [item for item in self._clothes if item.id in wanted]

    def add_model(self, model: ModelProfile) -> ModelProfile:
        if any(existing.id == model.id for existing in self._models):
            raise InvalidInputError(f"Duplicate model id {model.id}")
        self._models = (*self._models, model)
        return model

    def get_model(self, model_id: str) -> ModelProfile | None:
        return next((model for model in self._models if model.id == model_id), None)

    def preferred_model(self) -> ModelProfile | None:
        """Prefer the first user-supplied photo, otherwise the first preset."""

        return next((model for model in self._models if model.is_user), None) or next(
            iter(self._models), None
        )

    def replace_recommendations(self, recommendations: Sequence[OutfitRecommendation]) -> None:
        self._recommendations = tuple(recommendations)

    def set_recommendation_image(
        self,
        index: int,
        image_url: str,
        *,
        expected_id: str | None = None,
    ) -> OutfitRecommendation:
        """Cache ``image_url`` on the entry at ``index``.

        With ``expected_id`` the write only happens while that entry is still the
        one at ``index``; a list replaced in the meantime raises ``InvalidInputError``.
        """

        if not 0 <= index < len(self._recommendations):
            raise InvalidInputError("推荐不存在")
        if expected_id is not None and self._recommendations[index].id != expected_id:
            raise InvalidInputError(STALE_RECOMMENDATION)
        updated = dataclasses.replace(self._recommendations[index], generated_image_url=image_url)
        self._recommendations = (
            *self._recommendations[:index],
            updated,
            *self._recommendations[index + 1 :],
        )
        return updated


def seed_defaults(state: WardrobeState) -> None:
    """Populate a fresh state with the preset model and a few demo garments."""

    state.add_model(
        ModelProfile(
            id="m1",
            name=DEFAULT_MODEL_NAME,
            image_url="https://picsum.photos/400/600?random=10",
            is_user=False,
        )
    )
    demo = [
        ("1", Category.TOPS, "White", "Classic white tee", ("casual", "basic")),
        ("2", Category.BOTTOMS, "Blue", "Denim jeans", ("denim", "casual")),
        ("3", Category.DRESSES, "Red", "Summer floral dress", ("summer", "party")),
        ("4", Category.OUTERWEAR, "Black", "Leather Jacket", ("edgy", "fall")),
    ]
    for item_id, category, color, description, tags in demo:
        state.add_item(
            ClothingItem(
                id=item_id,
                image_url=f"https://picsum.photos/400/500?random={item_id}",
                category=category,
                color=color,
                description=description,
                tags=tags,
                created_at=state.next_timestamp(),
            )
        )
