from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Protocol, Sequence

# Raw probabilities at or above this threshold are treated as confident.
CONFIDENCE_THRESHOLD: float = 0.6


class InvalidPredictionError(ValueError):
    """Raised when a prediction list cannot be normalised."""


class ModelNotLoadedError(RuntimeError):
    """Raised when classifying before a model (or demo mode) was loaded."""


class ModelBackendError(RuntimeError):
    """Raised when an external model backend fails to answer."""


@dataclass(frozen=True)
class RipenessLabels:
    ripe: str = "Matang"
    semi_ripe: str = "Setengah Matang"
    unripe: str = "Mentah"

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.ripe, self.semi_ripe, self.unripe)

    @classmethod
    def from_sequence(cls, values: Sequence[str] | None) -> RipenessLabels:
        if not values or len(values) != 3:
            return cls()
        ripe, semi_ripe, unripe = (str(value).strip() for value in values)
        if not (ripe and semi_ripe and unripe):
            return cls()
        return cls(ripe=ripe, semi_ripe=semi_ripe, unripe=unripe)


DEFAULT_LABELS = RipenessLabels()


@dataclass(frozen=True)
class Sample:
    """Colour statistics of the centre region of an image."""

    brightness: float
    darkness: float
    green_ratio: float
    avg_red: float
    avg_green: float
    avg_blue: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Sample:
        return cls(
            brightness=float(data["brightness"]),
            darkness=float(data["darkness"]),
            green_ratio=float(data["green_ratio"]),
            avg_red=float(data["avg_red"]),
            avg_green=float(data["avg_green"]),
            avg_blue=float(data["avg_blue"]),
        )


DEFAULT_SAMPLE = Sample(
    brightness=128.0,
    darkness=0.5,
    green_ratio=0.4,
    avg_red=100.0,
    avg_green=120.0,
    avg_blue=80.0,
)


@dataclass(frozen=True)
class RawPrediction:
    class_name: str
    probability: float


@dataclass(frozen=True)
class ClassConfidence:
    class_name: str
    probability: float
    confidence: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TopPrediction(ClassConfidence):
    is_confident: bool = False


@dataclass(frozen=True)
class ClassificationResult:
    predictions: tuple[ClassConfidence, ...]
    top_prediction: TopPrediction
    is_demo: bool = False
    sample: Sample | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "predictions": [item.to_dict() for item in self.predictions],
            "top_prediction": self.top_prediction.to_dict(),
            "is_demo": self.is_demo,
            "sample": self.sample.to_dict() if self.sample is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClassificationResult:
        predictions = tuple(
            ClassConfidence(
                class_name=str(item["class_name"]),
                probability=float(item["probability"]),
                confidence=int(item["confidence"]),
            )
            for item in data.get("predictions", [])
        )
        top = data["top_prediction"]
        sample_data = data.get("sample")
        return cls(
            predictions=predictions,
            top_prediction=TopPrediction(
                class_name=str(top["class_name"]),
                probability=float(top["probability"]),
                confidence=int(top["confidence"]),
                is_confident=bool(top.get("is_confident", False)),
            ),
            is_demo=bool(data.get("is_demo", False)),
            sample=Sample.from_dict(sample_data) if sample_data else None,
        )


class ModelBackend(Protocol):
    def predict(self, image_bytes: bytes) -> Sequence[RawPrediction]: ...


__all__ = [
    "CONFIDENCE_THRESHOLD",
    "DEFAULT_LABELS",
    "DEFAULT_SAMPLE",
    "ClassConfidence",
    "ClassificationResult",
    "InvalidPredictionError",
    "ModelBackend",
    "ModelBackendError",
    "ModelNotLoadedError",
    "RawPrediction",
    "RipenessLabels",
    "Sample",
    "TopPrediction",
]
