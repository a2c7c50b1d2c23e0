"""Prompt building and image generation utilities."""

from .image_gen import TryOnGenerator
from .prompt_builder import TryOnPromptBuilder

__all__ = ["TryOnGenerator", "TryOnPromptBuilder"]
