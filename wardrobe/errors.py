"""Error taxonomy shared by the pipelines."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when a precondition fails before any network call is made."""


class ImageReadError(OSError):
    """Raised when an image cannot be read, fetched, or decoded."""


class ClassificationError(RuntimeError):
    """Raised when clothing classification fails or returns unusable data."""


class GenerationError(RuntimeError):
    """Raised when the composite image could not be produced."""


class RecommendationError(RuntimeError):
    """Raised when the recommendation step fails."""


class PipelineBusyError(RuntimeError):
    """Raised when a pipeline is invoked while a previous run is outstanding."""

    def __init__(self, pipeline: str) -> None:
        self.pipeline = pipeline
        super().__init__("上一个请求仍在处理中，请稍候")
