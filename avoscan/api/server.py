from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool

from ..ai.predictor import AvocadoClassifier
from ..ai.types import InvalidPredictionError, ModelBackendError, ModelNotLoadedError
from .result_cache import LastResultCache
from .schemas import (
    ClassificationResponse,
    ClassifyRequest,
    ModelSettingsPayload,
    ModelSettingsResponse,
)
from .service import ClassificationService


logger = logging.getLogger(__name__)


def create_app(
    classifier: AvocadoClassifier | None = None,
    settings_path: Path | None = None,
    last_result_path: Path | None = None,
) -> FastAPI:
    selected_classifier = classifier or AvocadoClassifier()
    service = ClassificationService(
        classifier=selected_classifier,
        result_cache=LastResultCache(last_result_path),
        settings_path=settings_path,
    )
    load_result = service.start()

    app = FastAPI(title="Avocado Ripeness API", version="0.1.0")
    app.state.service = service

    logger.info(
        "API server initialised model_url=%s demo=%s load=%s settings=%s last_result=%s",
        service.classifier.model_url,
        service.classifier.is_demo,
        load_result.message,
        settings_path,
        last_result_path,
    )

    @app.get("/health", response_model=dict[str, str])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/v1/classify", response_model=ClassificationResponse)
    async def classify(request: ClassifyRequest) -> ClassificationResponse:
        logger.info("Classify request payload_bytes=%d", len(request.image_base64))
        try:
            result = await run_in_threadpool(
                service.classify_base64, request.model_dump()
            )
        except ModelNotLoadedError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except ModelBackendError as exc:
            logger.exception("Model backend failed: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except InvalidPredictionError as exc:
            logger.exception("Model returned unusable predictions: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return ClassificationResponse(**result)

    @app.get("/v1/results/last", response_model=ClassificationResponse)
    def last_result() -> ClassificationResponse:
        result = service.last_result()
        if result is None:
            raise HTTPException(status_code=404, detail="No classification yet")
        return ClassificationResponse(**result)

    @app.delete("/v1/results/last", response_model=dict[str, str])
    def clear_last_result() -> dict[str, str]:
        service.clear_last_result()
        return {"status": "cleared"}

    @app.get("/v1/settings/model", response_model=ModelSettingsResponse)
    def get_model_settings() -> ModelSettingsResponse:
        return ModelSettingsResponse(**service.model_status())

    @app.post("/v1/settings/model", response_model=ModelSettingsResponse)
    async def update_model_settings(payload: ModelSettingsPayload) -> ModelSettingsResponse:
        try:
            result = await run_in_threadpool(service.set_model_url, payload.model_url)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OSError as exc:
            logger.exception("Failed to persist model settings: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to save settings") from exc
        if not result.success:
            raise HTTPException(
                status_code=502, detail=f"{result.message}: {result.error}"
            )
        return ModelSettingsResponse(**service.model_status())

    @app.delete("/v1/settings/model", response_model=ModelSettingsResponse)
    async def reset_model_settings() -> ModelSettingsResponse:
        try:
            result = await run_in_threadpool(service.reset_model_url)
        except OSError as exc:
            logger.exception("Failed to persist model settings: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to save settings") from exc
        if not result.success:
            raise HTTPException(
                status_code=502, detail=f"{result.message}: {result.error}"
            )
        return ModelSettingsResponse(**service.model_status())

    @app.on_event("shutdown")
    def _dispose_classifier() -> None:
        service.classifier.dispose()

    return app


__all__ = ["create_app"]
