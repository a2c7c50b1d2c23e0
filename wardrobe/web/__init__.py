"""HTTP surface of the wardrobe service."""
