"""Image encoding helpers."""

from .encoder import ImageEncoder, strip_data_uri, to_data_uri

__all__ = ["ImageEncoder", "strip_data_uri", "to_data_uri"]
