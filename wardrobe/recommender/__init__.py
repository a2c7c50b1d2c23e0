"""Outfit recommendation client."""

from .outfits import OutfitRecommender, build_inventory, current_season

__all__ = ["OutfitRecommender", "build_inventory", "current_season"]
