"""Response and request bodies of the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from wardrobe.logic import UploadProgress, UploadReport
from wardrobe.storage.models import ClothingItem, ModelProfile, OutfitRecommendation


class ClothingItemOut(BaseModel):
    id: str
    image_url: str
    category: str
    color: str
    description: str
    tags: list[str]
    created_at: int

    @classmethod
    def from_item(cls, item: ClothingItem) -> "ClothingItemOut":
        return cls(
            id=item.id,
            image_url=item.image_url,
            category=item.category.value,
            color=item.color,
            description=item.description,
            tags=list(item.tags),
            created_at=item.created_at,
        )


class ModelProfileOut(BaseModel):
    id: str
    name: str
    image_url: str
    is_user: bool

    @classmethod
    def from_model(cls, model: ModelProfile) -> "ModelProfileOut":
        return cls(id=model.id, name=model.name, image_url=model.image_url, is_user=model.is_user)


class RecommendationOut(BaseModel):
    id: str
    title: str
    description: str
    items: list[str]
    related_item_ids: list[str]
    reasoning: str
    generated_image_url: str | None = None

    @classmethod
    def from_recommendation(cls, rec: OutfitRecommendation) -> "RecommendationOut":
        return cls(
            id=rec.id,
            title=rec.title,
            description=rec.description,
            items=list(rec.items),
            related_item_ids=list(rec.related_item_ids),
            reasoning=rec.reasoning,
            generated_image_url=rec.generated_image_url,
        )


class UploadReportOut(BaseModel):
    total: int
    created: int
    failed: int
    warning: str | None = None
    clothes: list[ClothingItemOut] = []
    models: list[ModelProfileOut] = []

    @classmethod
    def from_report(cls, report: UploadReport) -> "UploadReportOut":
        return cls(
            total=report.total,
            created=len(report.created),
            failed=report.failed,
            warning=report.warning,
            clothes=[ClothingItemOut.from_item(i) for i in report.created if isinstance(i, ClothingItem)],
            models=[ModelProfileOut.from_model(m) for m in report.created if isinstance(m, ModelProfile)],
        )


class ProgressOut(BaseModel):
    completed: int
    total: int

    @classmethod
    def from_progress(cls, progress: UploadProgress | None) -> "ProgressOut | None":
        if progress is None:
            return None
        return cls(completed=progress.completed, total=progress.total)


class UploadStatusOut(BaseModel):
    clothing: ProgressOut | None = None
    models: ProgressOut | None = None


class TryOnRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str | None = None
    top_id: str | None = None
    bottom_id: str | None = None


class ImageOut(BaseModel):
    image_url: str
