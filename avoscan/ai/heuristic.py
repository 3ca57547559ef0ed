from __future__ import annotations

import logging
import random

from .types import DEFAULT_LABELS, RawPrediction, RipenessLabels, Sample

logger = logging.getLogger(__name__)

# Per-class perturbation applied before renormalising.
DEFAULT_JITTER = 0.05

# Green channel must exceed the red/blue average by this much to count as green.
GREEN_DOMINANCE_MIN = 10.0


def classify_sample(
    sample: Sample,
    rng: random.Random,
    labels: RipenessLabels = DEFAULT_LABELS,
    jitter: float = DEFAULT_JITTER,
) -> list[RawPrediction]:
    """Rule-based ripeness probabilities for a colour sample.

    Rules are checked in order and the first match wins:

    * bright and green -> unripe-leaning,
    * dark and not green -> ripe-leaning,
    * anything else -> semi-ripe with a lean taken from secondary signals.

    Each probability is then perturbed by up to ``jitter``, clamped to
    ``[0, 1]`` and renormalised. The result is sorted by probability, highest
    first.
    """
    ripe, semi_ripe, unripe = _base_probabilities(sample)

    perturbed = [
        _clamp(value + (rng.random() - 0.5) * 2 * jitter, 0.0, 1.0)
        for value in (ripe, semi_ripe, unripe)
    ]
    total = sum(perturbed)
    if total > 0:
        normalized = [value / total for value in perturbed]
    else:
        normalized = [1 / 3] * 3

    predictions = [
        RawPrediction(class_name=name, probability=probability)
        for name, probability in zip(labels.as_tuple(), normalized)
    ]
    predictions.sort(key=lambda item: item.probability, reverse=True)

    logger.debug(
        "Heuristic prediction top=%s probability=%.3f darkness=%.2f brightness=%.0f green_ratio=%.2f",
        predictions[0].class_name,
        predictions[0].probability,
        sample.darkness,
        sample.brightness,
        sample.green_ratio,
    )
    return predictions


def _base_probabilities(sample: Sample) -> tuple[float, float, float]:
    """Return ``(ripe, semi_ripe, unripe)`` before perturbation."""
    green_dominance = sample.avg_green - (sample.avg_red + sample.avg_blue) / 2
    is_greenish = green_dominance > GREEN_DOMINANCE_MIN

    if sample.brightness > 100 and (is_greenish or sample.green_ratio > 0.36):
        greenness = min(1.0, green_dominance / 50)
        brightness_factor = min(1.0, (sample.brightness - 100) / 100)
        score = greenness * 0.6 + brightness_factor * 0.4
        return 0.15 - score * 0.1, 0.25, 0.6 + score * 0.3

    if sample.darkness > 0.55 and not is_greenish:
        darkness_factor = (sample.darkness - 0.55) / 0.45
        return (
            0.6 + darkness_factor * 0.3,
            0.25 - darkness_factor * 0.1,
            0.15 - darkness_factor * 0.1,
        )

    if sample.darkness > 0.45 or sample.avg_green < sample.avg_red:
        return 0.3, 0.55, 0.15
    if is_greenish and sample.brightness > 90:
        return 0.15, 0.55, 0.3
    return 0.225, 0.55, 0.225


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


__all__ = ["DEFAULT_JITTER", "classify_sample"]
