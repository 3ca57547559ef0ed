from __future__ import annotations

RIPE_CLASS = "result-ripe"
SEMI_RIPE_CLASS = "result-semi-ripe"
UNRIPE_CLASS = "result-unripe"

_EMOJI = {
    RIPE_CLASS: "✅",
    SEMI_RIPE_CLASS: "⚠️",
    UNRIPE_CLASS: "❌",
}


def ripeness_category(class_name: str) -> str:
    """Map a model label to its display category.

    Labels are matched by substring so that both the Indonesian model labels
    ("Matang", "Setengah Matang", "Mentah") and English ones work. Unknown
    labels fall back to ripe.
    """
    label = class_name.strip().lower()
    if "setengah" in label or "semi" in label:
        return SEMI_RIPE_CLASS
    if "mentah" in label or "unripe" in label:
        return UNRIPE_CLASS
    return RIPE_CLASS


def ripeness_emoji(class_name: str) -> str:
    return _EMOJI[ripeness_category(class_name)]


__all__ = [
    "RIPE_CLASS",
    "SEMI_RIPE_CLASS",
    "UNRIPE_CLASS",
    "ripeness_category",
    "ripeness_emoji",
]
