"""Persistent model settings.

Stores the custom model URL chosen through the settings endpoint so it
survives restarts. When no custom URL is stored the configured default (or
demo mode, when none is configured) applies.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ModelSettings:
    custom_model_url: str | None = None
    last_updated: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "custom_model_url": self.custom_model_url,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModelSettings:
        return cls(
            custom_model_url=sanitize_model_url(data.get("custom_model_url")),
            last_updated=(
                data.get("last_updated")
                if isinstance(data.get("last_updated"), str)
                else None
            ),
        )

    def resolve_model_url(self, default: str | None) -> str | None:
        return self.custom_model_url or default


def sanitize_model_url(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    url = value.strip()
    if not url.startswith(("http://", "https://")):
        return None
    return url


def load_model_settings(path: Path) -> ModelSettings:
    """Load settings from ``path``, returning defaults on any problem."""
    if not path.exists():
        logger.info("No model settings found at %s; using defaults", path)
        return ModelSettings()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to load model settings from %s: %s; using defaults", path, exc)
        return ModelSettings()
    if not isinstance(data, dict):
        logger.warning("Model settings at %s are not an object; using defaults", path)
        return ModelSettings()

    settings = ModelSettings.from_dict(data)
    logger.info("Loaded model settings from %s: custom_model_url=%s", path, settings.custom_model_url)
    return settings


def save_model_settings(path: Path, settings: ModelSettings) -> None:
    """Write ``settings`` to ``path``.

    Raises:
        OSError: if the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    settings.last_updated = datetime.now(timezone.utc).isoformat()
    path.write_text(json.dumps(settings.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Saved model settings to %s: custom_model_url=%s", path, settings.custom_model_url)


def update_custom_model_url(path: Path, model_url: str | None) -> ModelSettings:
    """Store ``model_url`` (or clear it with ``None``).

    Raises:
        ValueError: if ``model_url`` is not an http(s) URL.
    """
    sanitized = sanitize_model_url(model_url) if model_url is not None else None
    if model_url is not None and sanitized is None:
        raise ValueError(f"Model URL must start with http:// or https://, got {model_url!r}")
    settings = load_model_settings(path)
    settings.custom_model_url = sanitized
    save_model_settings(path, settings)
    return settings


__all__ = [
    "ModelSettings",
    "load_model_settings",
    "sanitize_model_url",
    "save_model_settings",
    "update_custom_model_url",
]
