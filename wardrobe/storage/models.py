"""Domain records kept in the in-memory wardrobe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Category(str, Enum):
    """Clothing categories; values are the labels exchanged with the AI service."""

    TOPS = "上装"
    BOTTOMS = "下装"
    DRESSES = "裙装"
    OUTERWEAR = "外套"
    SHOES = "鞋履"
    ACCESSORIES = "配饰"
    UNSPECIFIED = "其他"

    @classmethod
    def parse(cls, raw: str) -> "Category":
        """Strictly match a wire label or a case-insensitive variant name."""

        normalized = raw.strip()
        for category in cls:
            if normalized == category.value or normalized.upper() == category.name:
                return category
        raise ValueError(f"unknown category {raw!r}")

    @classmethod
    def from_label(cls, raw: object) -> "Category":
        """Lenient variant of :meth:`parse` that defaults to UNSPECIFIED."""

        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return cls.UNSPECIFIED
        try:
            return cls.parse(raw)
        except ValueError:
            return cls.UNSPECIFIED

    @classmethod
    def labels(cls) -> list[str]:
        return [category.value for category in cls]


@dataclass(frozen=True, slots=True)
class ClothingItem:
    """A classified garment uploaded by the user."""

    id: str
    image_url: str
    category: Category
    color: str
    description: str
    tags: tuple[str, ...] = ()
    created_at: int = 0


@dataclass(frozen=True, slots=True)
class ModelProfile:
    """A person photo used as the subject of try-on images."""

    id: str
    name: str
    image_url: str
    is_user: bool = True


@dataclass(frozen=True, slots=True)
class OutfitRecommendation:
    """An outfit suggested by the recommendation model."""

    id: str
    title: str
    description: str
    items: tuple[str, ...] = ()
    related_item_ids: tuple[str, ...] = ()
    reasoning: str = ""
    generated_image_url: str | None = None


@dataclass(frozen=True, slots=True)
class UploadedImage:
    """Raw file selected by the user for one of the upload pipelines."""

    filename: str
    content: bytes = field(repr=False)
    content_type: str | None = None
