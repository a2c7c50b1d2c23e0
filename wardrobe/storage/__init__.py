"""In-memory wardrobe state."""

from .models import Category, ClothingItem, ModelProfile, OutfitRecommendation, UploadedImage
from .repository import WardrobeState, new_id, seed_defaults

__all__ = [
    "Category",
    "ClothingItem",
    "ModelProfile",
    "OutfitRecommendation",
    "UploadedImage",
    "WardrobeState",
    "new_id",
    "seed_defaults",
]
