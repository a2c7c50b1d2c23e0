"""Wardrobe manager with AI classification, virtual try-on and outfit recommendations."""

__version__ = "0.1.0"
