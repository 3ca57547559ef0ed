from __future__ import annotations

import base64
import binascii
import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from ..ai.labels import ripeness_category, ripeness_emoji
from ..ai.predictor import AvocadoClassifier, LoadResult
from ..ai.types import ClassificationResult
from .persistent_config import (
    load_model_settings,
    sanitize_model_url,
    update_custom_model_url,
)
from .result_cache import LastResultCache


logger = logging.getLogger(__name__)


def result_payload(result: ClassificationResult) -> Dict[str, Any]:
    """Serialise ``result`` together with its display helpers."""
    label = result.top_prediction.class_name
    return {
        **result.to_dict(),
        "category": ripeness_category(label),
        "emoji": ripeness_emoji(label),
    }


@dataclass
class ClassificationService:
    classifier: AvocadoClassifier
    result_cache: LastResultCache | None = None
    settings_path: Path | None = None
    default_model_url: str | None = None
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        if self.default_model_url is None:
            self.default_model_url = self.classifier.model_url

    def start(self) -> LoadResult:
        """Load the persisted custom model, or the default one."""
        model_url = self.default_model_url
        if self.settings_path is not None:
            model_url = load_model_settings(self.settings_path).resolve_model_url(
                self.default_model_url
            )
        result = self.reload_model(model_url)
        if result.success or not model_url:
            return result
        if self.default_model_url and model_url != self.default_model_url:
            logger.warning(
                "Saved model %s failed to load; trying default %s",
                model_url,
                self.default_model_url,
            )
            result = self.reload_model(self.default_model_url)
            if result.success:
                return result
        logger.warning("Falling back to demo mode after model load failure")
        return self.reload_model(None)

    def classify_base64(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        image_b64 = payload.get("image_base64") or ""
        try:
            image_bytes = base64.b64decode(image_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            logger.warning("Failed to decode image payload: %s", exc)
            raise ValueError("Invalid base64 image payload") from exc
        if not image_bytes:
            raise ValueError("Image payload is empty")
        return self.classify_bytes(image_bytes)

    def classify_bytes(self, image_bytes: bytes) -> Dict[str, Any]:
        logger.info("Running classification image_bytes=%d", len(image_bytes))
        with self._lock:
            classifier = self.classifier
        result = classifier.classify(image_bytes)
        if self.result_cache is not None:
            self.result_cache.update(result)
        return result_payload(result)

    def last_result(self) -> Dict[str, Any] | None:
        if self.result_cache is None:
            return None
        result = self.result_cache.get()
        return result_payload(result) if result is not None else None

    def clear_last_result(self) -> None:
        if self.result_cache is not None:
            self.result_cache.clear()
            logger.info("Cleared cached classification result")

    def model_status(self) -> Dict[str, Any]:
        with self._lock:
            classifier = self.classifier
        if classifier.is_demo or not classifier.model_url:
            mode = "demo"
        elif classifier.model_url == self.default_model_url:
            mode = "default"
        else:
            mode = "custom"
        return {
            "model_url": classifier.model_url,
            "mode": mode,
            "loaded": classifier.is_loaded,
        }

    def set_model_url(self, model_url: str) -> LoadResult:
        sanitized = sanitize_model_url(model_url)
        if sanitized is None:
            raise ValueError(
                f"Model URL must start with http:// or https://, got {model_url!r}"
            )
        result = self.reload_model(sanitized)
        if result.success and self.settings_path is not None:
            update_custom_model_url(self.settings_path, sanitized)
        return result

    def reset_model_url(self) -> LoadResult:
        if self.settings_path is not None:
            update_custom_model_url(self.settings_path, None)
        return self.reload_model(self.default_model_url)

    def reload_model(self, model_url: str | None) -> LoadResult:
        replacement = dataclasses.replace(self.classifier, model_url=model_url)
        result = replacement.load_model()
        if not result.success:
            logger.warning(
                "Keeping current classifier; loading %s failed: %s",
                model_url,
                result.error,
            )
            return result
        with self._lock:
            previous = self.classifier
            self.classifier = replacement
        if previous is not replacement:
            previous.dispose()
        logger.info(
            "Classifier ready model_url=%s demo=%s", model_url, replacement.is_demo
        )
        return result


__all__ = ["ClassificationService", "result_payload"]
