from __future__ import annotations

from .types import (
    ClassConfidence,
    ClassificationResult,
    RawPrediction,
    RipenessLabels,
    Sample,
    TopPrediction,
)

__all__ = [
    "AvocadoClassifier",
    "ClassConfidence",
    "ClassificationResult",
    "RawPrediction",
    "RemoteModelClient",
    "RipenessLabels",
    "Sample",
    "TopPrediction",
    "classify_image",
    "classify_sample",
    "normalize_predictions",
    "sample_image",
]


def __getattr__(name: str):
    if name in {"AvocadoClassifier", "classify_image"}:
        from . import predictor

        return getattr(predictor, name)
    if name == "RemoteModelClient":
        from .remote_model import RemoteModelClient

        return RemoteModelClient
    if name == "classify_sample":
        from .heuristic import classify_sample

        return classify_sample
    if name == "normalize_predictions":
        from .normalizer import normalize_predictions

        return normalize_predictions
    if name == "sample_image":
        from .sampler import sample_image

        return sample_image
    raise AttributeError(f"module 'avoscan.ai' has no attribute {name!r}")
