"""Turn raw class probabilities into integer percentages that sum to 100.

The displayed top confidence is jittered slightly and bounded to
``[TOP_MIN, TOP_MAX]`` so the UI never shows false certainty (100%) or a
meaningless winner. The remainder is shared between the other classes in
proportion to their raw probabilities, and any rounding residue is absorbed
by the second-ranked class so the top value stays as computed.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Sequence

from .types import (
    CONFIDENCE_THRESHOLD,
    ClassConfidence,
    ClassificationResult,
    InvalidPredictionError,
    RawPrediction,
    Sample,
    TopPrediction,
)

logger = logging.getLogger(__name__)

TOP_MIN = 0.40
TOP_MAX = 0.98
DEFAULT_TOP_JITTER = 0.015


@dataclass
class _Row:
    class_name: str
    probability: float
    confidence: int


def normalize_predictions(
    predictions: Sequence[RawPrediction],
    rng: random.Random,
    *,
    threshold: float = CONFIDENCE_THRESHOLD,
    top_jitter: float = DEFAULT_TOP_JITTER,
    is_demo: bool = False,
    sample: Sample | None = None,
) -> ClassificationResult:
    """Build a :class:`ClassificationResult` whose confidences sum to 100.

    Raises:
        InvalidPredictionError: if ``predictions`` is empty or holds a
            negative or non-numeric probability.
    """
    ranked = _validated(predictions)

    if len(ranked) == 1:
        rows = [_Row(ranked[0].class_name, ranked[0].probability, 100)]
        return _build_result(rows, threshold, is_demo, sample)

    top = ranked[0]
    adjusted = top.probability + (rng.random() - 0.5) * 2 * top_jitter
    adjusted = max(TOP_MIN, min(TOP_MAX, adjusted))
    top_confidence = round_half_up(adjusted * 100)

    remaining = 100 - top_confidence
    others = ranked[1:]
    others_total = sum(item.probability for item in others)

    rows = [_Row(top.class_name, top.probability, top_confidence)]
    for item in others:
        if others_total > 0:
            share = item.probability / others_total * remaining
        else:
            share = remaining / len(others)
        rows.append(_Row(item.class_name, item.probability, round_half_up(share)))

    diff = 100 - sum(row.confidence for row in rows)
    if diff != 0:
        # Only the runner-up absorbs the residue; the top stays stable.
        rows[1].confidence += diff
        if rows[1].confidence < 0:
            rows[0].confidence += rows[1].confidence
            rows[1].confidence = 0
        logger.debug(
            "Absorbed rounding residue diff=%d into %s", diff, rows[1].class_name
        )

    rows.sort(key=lambda row: row.confidence, reverse=True)
    return _build_result(rows, threshold, is_demo, sample)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounded towards +inf."""
    return int(math.floor(value + 0.5))


def _validated(predictions: Sequence[RawPrediction]) -> list[RawPrediction]:
    if not predictions:
        raise InvalidPredictionError("at least one prediction is required")
    cleaned: list[RawPrediction] = []
    for item in predictions:
        try:
            probability = float(item.probability)
        except (TypeError, ValueError) as exc:
            raise InvalidPredictionError(
                f"probability for {item.class_name!r} is not a number"
            ) from exc
        if math.isnan(probability) or probability < 0:
            raise InvalidPredictionError(
                f"probability for {item.class_name!r} must be >= 0, got {probability}"
            )
        cleaned.append(RawPrediction(item.class_name, probability))
    cleaned.sort(key=lambda item: item.probability, reverse=True)
    return [RawPrediction(item.class_name, min(1.0, item.probability)) for item in cleaned]


def _build_result(
    rows: list[_Row],
    threshold: float,
    is_demo: bool,
    sample: Sample | None,
) -> ClassificationResult:
    first = rows[0]
    top = TopPrediction(
        class_name=first.class_name,
        probability=first.probability,
        confidence=first.confidence,
        is_confident=first.probability >= threshold,
    )
    return ClassificationResult(
        predictions=tuple(
            ClassConfidence(row.class_name, row.probability, row.confidence)
            for row in rows
        ),
        top_prediction=top,
        is_demo=is_demo,
        sample=sample,
    )


__all__ = [
    "DEFAULT_TOP_JITTER",
    "TOP_MAX",
    "TOP_MIN",
    "normalize_predictions",
    "round_half_up",
]
