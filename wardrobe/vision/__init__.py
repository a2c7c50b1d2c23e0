"""Garment classification."""

from .classifier import ClothingAnalysis, ClothingClassifier

__all__ = ["ClothingAnalysis", "ClothingClassifier"]
