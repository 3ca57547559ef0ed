from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Sequence, Union

from .heuristic import DEFAULT_JITTER, classify_sample
from .normalizer import DEFAULT_TOP_JITTER, normalize_predictions
from .remote_model import RemoteModelClient
from .sampler import ImageSource, encode_jpeg, sample_image
from .types import (
    CONFIDENCE_THRESHOLD,
    DEFAULT_LABELS,
    ClassificationResult,
    ModelBackend,
    ModelNotLoadedError,
    RawPrediction,
    RipenessLabels,
    Sample,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelBacked:
    """Predictions come from a loaded external model."""

    backend: ModelBackend


@dataclass(frozen=True)
class Heuristic:
    """Predictions come from colour rules ("demo mode")."""

    labels: RipenessLabels = DEFAULT_LABELS
    jitter: float = DEFAULT_JITTER


Predictor = Union[ModelBacked, Heuristic]


def select_predictor(
    backend: ModelBackend | None,
    labels: RipenessLabels = DEFAULT_LABELS,
    jitter: float = DEFAULT_JITTER,
) -> Predictor:
    if backend is not None:
        return ModelBacked(backend=backend)
    return Heuristic(labels=labels, jitter=jitter)


def predict(
    predictor: Predictor, image: ImageSource, rng: random.Random
) -> tuple[Sequence[RawPrediction], Sample | None, bool]:
    """Return ``(raw_predictions, sample, is_demo)`` for ``image``."""
    if isinstance(predictor, ModelBacked):
        return predictor.backend.predict(encode_jpeg(image)), None, False
    if isinstance(predictor, Heuristic):
        sample = sample_image(image)
        logger.debug("Image analysis %s", sample)
        raw = classify_sample(sample, rng, labels=predictor.labels, jitter=predictor.jitter)
        return raw, sample, True
    raise TypeError(f"Unsupported predictor {predictor!r}")


def classify_image(
    image: ImageSource,
    predictor: Predictor,
    rng: random.Random | None = None,
    *,
    threshold: float = CONFIDENCE_THRESHOLD,
    top_jitter: float = DEFAULT_TOP_JITTER,
) -> ClassificationResult:
    """Run sampling/prediction and normalisation for a single image."""
    if rng is None:
        rng = random.Random()
    raw, sample, is_demo = predict(predictor, image, rng)
    return normalize_predictions(
        raw,
        rng,
        threshold=threshold,
        top_jitter=top_jitter,
        is_demo=is_demo,
        sample=sample,
    )


@dataclass
class LoadResult:
    success: bool
    message: str
    error: str | None = None


BackendFactory = Callable[[str], ModelBackend]


def remote_backend_factory(timeout: float = 30.0) -> BackendFactory:
    def _load(model_url: str) -> RemoteModelClient:
        client = RemoteModelClient(model_url=model_url, timeout=timeout)
        client.load()
        return client

    return _load


@dataclass
class AvocadoClassifier:
    """Load a model (or fall back to demo mode) and classify images.

    ``load_model`` must be called before ``classify``. With no ``model_url``
    the classifier runs in demo mode and uses the colour heuristic.
    """

    model_url: str | None = None
    labels: RipenessLabels = DEFAULT_LABELS
    threshold: float = CONFIDENCE_THRESHOLD
    heuristic_jitter: float = DEFAULT_JITTER
    top_jitter: float = DEFAULT_TOP_JITTER
    backend_factory: BackendFactory = field(default_factory=remote_backend_factory)
    _backend: ModelBackend | None = field(init=False, default=None)
    _predictor: Predictor | None = field(init=False, default=None)

    @property
    def is_loaded(self) -> bool:
        return self._predictor is not None

    @property
    def is_demo(self) -> bool:
        return isinstance(self._predictor, Heuristic)

    def load_model(self) -> LoadResult:
        if not self.model_url:
            logger.warning("Model URL not configured. Using demo mode.")
            self._predictor = select_predictor(None, self.labels, self.heuristic_jitter)
            return LoadResult(success=True, message="Demo mode activated")
        try:
            self._backend = self.backend_factory(self.model_url)
        except Exception as exc:
            logger.error("Failed to load model from %s: %s", self.model_url, exc)
            return LoadResult(
                success=False, message="Failed to load model", error=str(exc)
            )
        self._predictor = select_predictor(self._backend, self.labels)
        logger.info("Model loaded from %s", self.model_url)
        return LoadResult(success=True, message="Model loaded successfully")

    def classify(
        self, image: ImageSource, rng: random.Random | None = None
    ) -> ClassificationResult:
        # dispose() may clear _predictor while this call is running
        predictor = self._predictor
        if predictor is None:
            raise ModelNotLoadedError("Model not loaded. Call load_model() first.")
        result = classify_image(
            image,
            predictor,
            rng,
            threshold=self.threshold,
            top_jitter=self.top_jitter,
        )
        logger.info(
            "Classified image top=%s confidence=%d demo=%s",
            result.top_prediction.class_name,
            result.top_prediction.confidence,
            result.is_demo,
        )
        return result

    def dispose(self) -> None:
        backend = self._backend
        if backend is not None:
            dispose = getattr(backend, "dispose", None)
            if callable(dispose):
                dispose()
            self._backend = None
            self._predictor = None
            logger.info("Model disposed")


__all__ = [
    "AvocadoClassifier",
    "Heuristic",
    "LoadResult",
    "ModelBacked",
    "Predictor",
    "classify_image",
    "predict",
    "remote_backend_factory",
    "select_predictor",
]
