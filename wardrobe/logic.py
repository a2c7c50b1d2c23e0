"""High-level business logic: upload, try-on and recommendation pipelines."""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional, Sequence, TypeVar

from wardrobe.api.aitunnel_client import AITunnelClient
from wardrobe.config.settings import Settings
from wardrobe.errors import ClassificationError, ImageReadError, InvalidInputError, PipelineBusyError
from wardrobe.imaging.encoder import ImageEncoder, to_data_uri
from wardrobe.imggen.image_gen import TryOnGenerator
from wardrobe.monitoring import metrics
from wardrobe.recommender.outfits import OutfitRecommender
from wardrobe.storage.models import (
    Category,
    ClothingItem,
    ModelProfile,
    OutfitRecommendation,
    UploadedImage,
)
from wardrobe.storage.repository import WardrobeState, new_id
from wardrobe.vision.classifier import ClothingClassifier

BATCH_WARNING = "部分图片识别失败，请重试"

# Categories accepted by each try-on slot.
TOP_SLOT = frozenset({Category.TOPS, Category.OUTERWEAR})
BOTTOM_SLOT = frozenset({Category.BOTTOMS, Category.DRESSES})

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class ConcurrencyPolicy(str, Enum):
    """How a pipeline schedules its independent per-image steps."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class Pipeline(str, Enum):
    CLOTHING_UPLOAD = "clothing_upload"
    MODEL_UPLOAD = "model_upload"
    TRY_ON = "try_on"
    RECOMMEND = "recommend"
    VISUALIZE = "visualize"


# Uploads call the classification endpoint per item and must stay sequential.
PIPELINE_POLICIES: dict[Pipeline, ConcurrencyPolicy] = {
    Pipeline.CLOTHING_UPLOAD: ConcurrencyPolicy.SEQUENTIAL,
    Pipeline.MODEL_UPLOAD: ConcurrencyPolicy.SEQUENTIAL,
    Pipeline.TRY_ON: ConcurrencyPolicy.PARALLEL,
    Pipeline.RECOMMEND: ConcurrencyPolicy.SEQUENTIAL,
    Pipeline.VISUALIZE: ConcurrencyPolicy.PARALLEL,
}


@dataclass(frozen=True, slots=True)
class UploadProgress:
    completed: int
    total: int

    def __str__(self) -> str:
        return f"{self.completed}/{self.total}"


@dataclass(slots=True)
class UploadReport:
    """Outcome of one upload batch."""

    total: int
    created: list[ClothingItem | ModelProfile] = field(default_factory=list)
    failed: int = 0
    warning: str | None = None


ProgressCallback = Callable[[UploadProgress], Optional[Awaitable[None]]]


async def run_with_policy(
    policy: ConcurrencyPolicy,
    func: Callable[[T], Awaitable[R]],
    values: Sequence[T],
) -> list[R]:
    """Apply ``func`` to every value, one at a time or fanned out, preserving order."""

    if policy is ConcurrencyPolicy.PARALLEL:
        return list(await asyncio.gather(*(func(value) for value in values)))
    results: list[R] = []
    for value in values:
        results.append(await func(value))
    return results


class WardrobeOrchestrator:
    """Owns the wardrobe collections and composes the AI clients into pipelines."""

    def __init__(
        self,
        state: WardrobeState,
        encoder: ImageEncoder,
        classifier: ClothingClassifier,
        generator: TryOnGenerator,
        recommender: OutfitRecommender,
        *,
        client: AITunnelClient | None = None,
    ) -> None:
        self._state = state
        self._encoder = encoder
        self._classifier = classifier
        self._generator = generator
        self._recommender = recommender
        self._client = client
        self._locks = {pipeline: asyncio.Lock() for pipeline in Pipeline}
        self._progress: dict[Pipeline, UploadProgress] = {}
        self._latest_try_on: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings, state: WardrobeState | None = None) -> "WardrobeOrchestrator":
        client = AITunnelClient(settings)
        encoder = ImageEncoder(
            max_bytes=settings.max_image_bytes,
            max_dimension=settings.max_image_dimension,
            timeout=settings.request_timeout,
        )
        return cls(
            state or WardrobeState(),
            encoder,
            ClothingClassifier(client),
            TryOnGenerator(client),
            OutfitRecommender(client, count=settings.recommendation_count),
            client=client,
        )

    async def close(self) -> None:
        await self._encoder.close()
        if self._client is not None:
            await self._client.close()

    # Queries

    def clothes(self, category: Category | None = None) -> tuple[ClothingItem, ...]:
        items = self._state.clothes
        if category is None:
            return items
        return tuple(item for item in items if item.category is category)

    def models(self) -> tuple[ModelProfile, ...]:
        return self._state.models

    def recommendations(self) -> tuple[OutfitRecommendation, ...]:
        return self._state.recommendations

    @property
    def latest_try_on_image(self) -> str | None:
        return self._latest_try_on

    def upload_progress(self, pipeline: Pipeline) -> UploadProgress | None:
        """Progress of the running upload batch, ``None`` when idle."""

        return self._progress.get(pipeline)

    def is_busy(self, pipeline: Pipeline) -> bool:
        return self._locks[pipeline].locked()

    def delete_item(self, item_id: str) -> ClothingItem:
        removed = self._state.remove_item(item_id)
        logger.info("Removed clothing item %s", item_id)
        return removed

    # Upload pipelines

    async def upload_clothing(
        self,
        files: Sequence[UploadedImage],
        on_progress: ProgressCallback | None = None,
    ) -> UploadReport:
        """Encode and classify each file in order, appending a ClothingItem per success."""

        async def handle(upload: UploadedImage) -> ClothingItem:
            image_base64 = await self._encode_upload(upload)
            analysis = await self._classifier.classify(image_base64)
            return self._state.add_item(
                ClothingItem(
                    id=new_id(),
                    image_url=to_data_uri(image_base64),
                    category=analysis.category,
                    color=analysis.color,
                    description=analysis.description,
                    tags=tuple(analysis.tags),
                    created_at=self._state.next_timestamp(),
                )
            )

        return await self._run_upload_batch(Pipeline.CLOTHING_UPLOAD, files, handle, on_progress)

    async def upload_models(
        self,
        files: Sequence[UploadedImage],
        on_progress: ProgressCallback | None = None,
    ) -> UploadReport:
        """Encode each file in order and append a user-supplied ModelProfile per success."""

        async def handle(upload: UploadedImage) -> ModelProfile:
            image_base64 = await self._encode_upload(upload)
            return self._state.add_model(
                ModelProfile(
                    id=new_id(),
                    name=f"模特 {len(self._state.models) + 1}",
                    image_url=to_data_uri(image_base64),
                    is_user=True,
                )
            )

        return await self._run_upload_batch(Pipeline.MODEL_UPLOAD, files, handle, on_progress)

    async def _encode_upload(self, upload: UploadedImage) -> str:
        if upload.content_type and not upload.content_type.startswith("image/"):
            raise ImageReadError(f"{upload.filename} 不是图片文件")
        return await self._encoder.encode_bytes(upload.content)

    async def _run_upload_batch(
        self,
        pipeline: Pipeline,
        files: Sequence[UploadedImage],
        handle: Callable[[UploadedImage], Awaitable[ClothingItem | ModelProfile]],
        on_progress: ProgressCallback | None,
    ) -> UploadReport:
        if not files:
            raise InvalidInputError("请选择至少一张图片")
        if PIPELINE_POLICIES[pipeline] is not ConcurrencyPolicy.SEQUENTIAL:
            raise RuntimeError(f"{pipeline.value} must run sequentially")

        kind = "clothing" if pipeline is Pipeline.CLOTHING_UPLOAD else "model"
        report = UploadReport(total=len(files))
        async with self._guard(pipeline):
            logger.info("Starting %s upload of %d file(s)", kind, len(files))
            try:
                await self._publish_progress(pipeline, UploadProgress(0, len(files)), on_progress)
                for index, upload in enumerate(files, start=1):
                    try:
                        report.created.append(await handle(upload))
                        metrics.uploads_total.labels(kind=kind, outcome="success").inc()
                    except (ImageReadError, ClassificationError) as exc:
                        report.failed += 1
                        metrics.uploads_total.labels(kind=kind, outcome="failure").inc()
                        logger.warning("Upload of %s failed: %s", upload.filename, exc)
                    await self._publish_progress(pipeline, UploadProgress(index, len(files)), on_progress)
            finally:
                self._progress.pop(pipeline, None)

        if report.failed:
            report.warning = BATCH_WARNING
        logger.info(
            "Finished %s upload: %d created, %d failed",
            kind,
            len(report.created),
            report.failed,
        )
        return report

    async def _publish_progress(
        self,
        pipeline: Pipeline,
        progress: UploadProgress,
        on_progress: ProgressCallback | None,
    ) -> None:
        self._progress[pipeline] = progress
        if on_progress is None:
            return
        result = on_progress(progress)
        if inspect.isawaitable(result):
            await result

    # Generation pipelines

    async def try_on(
        self,
        model_id: str | None,
        top_id: str | None = None,
        bottom_id: str | None = None,
    ) -> str:
        """Render the selected model wearing the selected top and/or bottom.

        The top slot takes tops or outerwear, the bottom slot bottoms or dresses.
        """

        model = self._state.get_model(model_id) if model_id else None
        if model is None or not (top_id or bottom_id):
            raise InvalidInputError("请选择一个模特和至少一件衣服")
        garments: list[ClothingItem] = []
        for garment_id, allowed in ((top_id, TOP_SLOT), (bottom_id, BOTTOM_SLOT)):
            if not garment_id:
                continue
            garment = self._state.get_item(garment_id)
            if garment is None:
                raise InvalidInputError("找不到所选的衣服")
            if garment.category not in allowed:
                raise InvalidInputError(f"{garment.category.value}不能放在这个位置")
            garments.append(garment)

        async with self._guard(Pipeline.TRY_ON):
            logger.info("Generating try-on for model %s with %d garment(s)", model.id, len(garments))
            image_url = await self._generate(Pipeline.TRY_ON, model, garments)
        self._latest_try_on = image_url
        return image_url

    async def recommend(self) -> tuple[OutfitRecommendation, ...]:
        """Replace the recommendation list with fresh suggestions for the current wardrobe."""

        async with self._guard(Pipeline.RECOMMEND):
            try:
                recommendations = await self._recommender.recommend(self._state.clothes)
            except Exception:
                metrics.recommendation_requests_total.labels(outcome="failure").inc()
                raise
            metrics.recommendation_requests_total.labels(outcome="success").inc()
            self._state.replace_recommendations(recommendations)
        logger.info("Stored %d outfit recommendation(s)", len(recommendations))
        return self._state.recommendations

    async def visualize_recommendation(self, index: int) -> OutfitRecommendation:
        """Generate a look for the recommendation at ``index`` and cache it on that entry.

        Ids that no longer exist in the wardrobe are skipped. Calling this again
        regenerates the image and overwrites the cached one.
        """

        recommendations = self._state.recommendations
        if not 0 <= index < len(recommendations):
            raise InvalidInputError("推荐不存在")
        recommendation = recommendations[index]

        model = self._state.preferred_model()
        if model is None:
            raise InvalidInputError("请先在'模特'页面上传或选择一个模特")
        garments = self._state.find_items(recommendation.related_item_ids)
        if not garments:
            raise InvalidInputError("无法找到该搭配对应的衣物图片")

        async with self._guard(Pipeline.VISUALIZE):
            logger.info(
                "Visualising recommendation %d with %d of %d cited item(s)",
                index,
                len(garments),
                len(recommendation.related_item_ids),
            )
            image_url = await self._generate(Pipeline.VISUALIZE, model, garments)
            return self._state.set_recommendation_image(index, image_url, expected_id=recommendation.id)

    async def _generate(
        self,
        pipeline: Pipeline,
        model: ModelProfile,
        garments: Sequence[ClothingItem],
    ) -> str:
        references = [model.image_url, *(garment.image_url for garment in garments)]
        try:
            subject, *garment_payloads = await run_with_policy(
                PIPELINE_POLICIES[pipeline],
                self._encoder.encode_reference,
                references,
            )
            image_url = await self._generator.generate(subject, garment_payloads)
        except Exception:
            metrics.generations_total.labels(pipeline=pipeline.value, outcome="failure").inc()
            raise
        metrics.generations_total.labels(pipeline=pipeline.value, outcome="success").inc()
        return image_url

    @asynccontextmanager
    async def _guard(self, pipeline: Pipeline) -> AsyncIterator[None]:
        lock = self._locks[pipeline]
        if lock.locked():
            raise PipelineBusyError(pipeline.value)
        async with lock:
            yield
