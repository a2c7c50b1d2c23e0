"""FastAPI entrypoint and HTTP routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from wardrobe.config.settings import Settings, get_settings
from wardrobe.errors import (
    ClassificationError,
    GenerationError,
    ImageReadError,
    InvalidInputError,
    PipelineBusyError,
    RecommendationError,
)
from wardrobe.logic import Pipeline, WardrobeOrchestrator
from wardrobe.monitoring.logging import configure_logging
from wardrobe.storage.models import Category, UploadedImage
from wardrobe.storage.repository import WardrobeState, seed_defaults
from wardrobe.web.schemas import (
    ClothingItemOut,
    ImageOut,
    ModelProfileOut,
    ProgressOut,
    RecommendationOut,
    TryOnRequest,
    UploadReportOut,
    UploadStatusOut,
)

SETUP_REQUIRED = "需要先配置 API Key"

logger = logging.getLogger(__name__)


def get_orchestrator(request: Request) -> WardrobeOrchestrator:
    return request.app.state.orchestrator


def require_api_key(request: Request) -> None:
    """Block pipeline endpoints until an API credential is configured."""

    settings: Settings = request.app.state.settings
    if not settings.api_key_configured:
        raise HTTPException(status_code=503, detail=SETUP_REQUIRED)


async def _read_uploads(files: list[UploadFile]) -> list[UploadedImage]:
    uploads: list[UploadedImage] = []
    for upload in files:
        uploads.append(
            UploadedImage(
                filename=upload.filename or "upload",
                content=await upload.read(),
                content_type=upload.content_type,
            )
        )
    return uploads


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(
    settings: Settings | None = None,
    orchestrator: WardrobeOrchestrator | None = None,
) -> FastAPI:
    """Initialise the FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings)
    owns_orchestrator = orchestrator is None
    if orchestrator is None:
        state = WardrobeState()
        if settings.seed_defaults:
            seed_defaults(state)
        orchestrator = WardrobeOrchestrator.from_settings(settings, state)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            if owns_orchestrator:
                await orchestrator.close()

    app = FastAPI(
        title="Wardrobe Studio API",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.mount("/metrics", make_asgi_app())

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(_: Request, exc: InvalidInputError) -> JSONResponse:
        return _error_response(400, exc)

    @app.exception_handler(ImageReadError)
    async def image_read_handler(_: Request, exc: ImageReadError) -> JSONResponse:
        return _error_response(400, exc)

    @app.exception_handler(PipelineBusyError)
    async def busy_handler(_: Request, exc: PipelineBusyError) -> JSONResponse:
        return _error_response(409, exc)

    async def service_error_handler(_: Request, exc: Exception) -> JSONResponse:
        return _error_response(502, exc)

    for error_cls in (ClassificationError, GenerationError, RecommendationError):
        app.add_exception_handler(error_cls, service_error_handler)

    gated = [Depends(require_api_key)]

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used by readiness checks."""

        return {"status": "ok"}

    @app.get("/setup", tags=["system"])
    async def setup_status(request: Request) -> dict[str, bool]:
        return {"api_key_configured": request.app.state.settings.api_key_configured}

    @app.get("/clothes", tags=["wardrobe"], response_model=list[ClothingItemOut])
    async def list_clothes(
        category: str | None = None,
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> list[ClothingItemOut]:
        selected = None
        if category is not None:
            try:
                selected = Category.parse(category)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=f"未知分类: {category}") from exc
        return [ClothingItemOut.from_item(item) for item in orchestrator.clothes(selected)]

    @app.post("/clothes", tags=["wardrobe"], response_model=UploadReportOut, dependencies=gated)
    async def upload_clothes(
        files: list[UploadFile] = File(...),
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> UploadReportOut:
        report = await orchestrator.upload_clothing(await _read_uploads(files))
        return UploadReportOut.from_report(report)

    @app.delete("/clothes/{item_id}", tags=["wardrobe"], status_code=204)
    async def delete_clothing(
        item_id: str,
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> None:
        orchestrator.delete_item(item_id)

    @app.get("/models", tags=["models"], response_model=list[ModelProfileOut])
    async def list_models(
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> list[ModelProfileOut]:
        return [ModelProfileOut.from_model(model) for model in orchestrator.models()]

    @app.post("/models", tags=["models"], response_model=UploadReportOut, dependencies=gated)
    async def upload_models(
        files: list[UploadFile] = File(...),
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> UploadReportOut:
        report = await orchestrator.upload_models(await _read_uploads(files))
        return UploadReportOut.from_report(report)

    @app.get("/uploads/progress", tags=["wardrobe"], response_model=UploadStatusOut)
    async def upload_progress(
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> UploadStatusOut:
        return UploadStatusOut(
            clothing=ProgressOut.from_progress(orchestrator.upload_progress(Pipeline.CLOTHING_UPLOAD)),
            models=ProgressOut.from_progress(orchestrator.upload_progress(Pipeline.MODEL_UPLOAD)),
        )

    @app.post("/try-on", tags=["try-on"], response_model=ImageOut, dependencies=gated)
    async def try_on(
        body: TryOnRequest,
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> ImageOut:
        image_url = await orchestrator.try_on(body.model_id, top_id=body.top_id, bottom_id=body.bottom_id)
        return ImageOut(image_url=image_url)

    @app.get("/recommendations", tags=["inspire"], response_model=list[RecommendationOut])
    async def list_recommendations(
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> list[RecommendationOut]:
        return [RecommendationOut.from_recommendation(rec) for rec in orchestrator.recommendations()]

    @app.post(
        "/recommendations",
        tags=["inspire"],
        response_model=list[RecommendationOut],
        dependencies=gated,
    )
    async def create_recommendations(
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> list[RecommendationOut]:
        recommendations = await orchestrator.recommend()
        return [RecommendationOut.from_recommendation(rec) for rec in recommendations]

    @app.post(
        "/recommendations/{index}/visualize",
        tags=["inspire"],
        response_model=RecommendationOut,
        dependencies=gated,
    )
    async def visualize_recommendation(
        index: int,
        orchestrator: WardrobeOrchestrator = Depends(get_orchestrator),
    ) -> RecommendationOut:
        recommendation = await orchestrator.visualize_recommendation(index)
        return RecommendationOut.from_recommendation(recommendation)

    logger.info("Wardrobe API initialised (api key configured: %s)", settings.api_key_configured)
    return app


app = create_app()
