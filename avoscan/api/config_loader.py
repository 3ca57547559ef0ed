"""Load application configuration from ``config/avoscan.json``.

Every section is optional; missing or malformed values fall back to the
dataclass defaults so a fresh checkout runs in demo mode without any file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..ai.heuristic import DEFAULT_JITTER
from ..ai.normalizer import DEFAULT_TOP_JITTER
from ..ai.types import CONFIDENCE_THRESHOLD, RipenessLabels

logger = logging.getLogger(__name__)


@dataclass
class ServerSection:
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class ClassifierSection:
    model_url: str | None = None
    timeout: float = 30.0
    confidence_threshold: float = CONFIDENCE_THRESHOLD
    labels: RipenessLabels = field(default_factory=RipenessLabels)
    heuristic_jitter: float = DEFAULT_JITTER
    top_jitter: float = DEFAULT_TOP_JITTER


@dataclass
class PathsSection:
    settings: str = "config/model_settings.json"
    last_result: str = "config/last_result.json"


@dataclass
class AppConfig:
    server: ServerSection = field(default_factory=ServerSection)
    classifier: ClassifierSection = field(default_factory=ClassifierSection)
    paths: PathsSection = field(default_factory=PathsSection)


def load_config(path: str | Path | None) -> AppConfig:
    """Read ``path`` into an :class:`AppConfig`.

    Raises:
        FileNotFoundError: if ``path`` is given but does not exist.
        ValueError: if the file is not a JSON object.
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a JSON object")

    cfg = AppConfig(
        server=_server_section(_section(data, "server")),
        classifier=_classifier_section(_section(data, "classifier")),
        paths=_paths_section(_section(data, "paths")),
    )
    logger.info("Loaded configuration from %s", config_path)
    return cfg


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    return value if isinstance(value, dict) else {}


def _server_section(data: dict[str, Any]) -> ServerSection:
    defaults = ServerSection()
    return ServerSection(
        host=str(data.get("host") or defaults.host),
        port=_as_int(data.get("port"), defaults.port),
    )


def _classifier_section(data: dict[str, Any]) -> ClassifierSection:
    defaults = ClassifierSection()
    model_url = data.get("model_url")
    if not isinstance(model_url, str) or not model_url.strip():
        model_url = None
    threshold = _as_float(data.get("confidence_threshold"), defaults.confidence_threshold)
    return ClassifierSection(
        model_url=model_url.strip() if model_url else None,
        timeout=_as_float(data.get("timeout"), defaults.timeout),
        confidence_threshold=max(0.0, min(1.0, threshold)),
        labels=RipenessLabels.from_sequence(data.get("labels")),
        heuristic_jitter=max(0.0, _as_float(data.get("heuristic_jitter"), defaults.heuristic_jitter)),
        top_jitter=max(0.0, _as_float(data.get("top_jitter"), defaults.top_jitter)),
    )


def _paths_section(data: dict[str, Any]) -> PathsSection:
    defaults = PathsSection()
    return PathsSection(
        settings=str(data.get("settings") or defaults.settings),
        last_result=str(data.get("last_result") or defaults.last_result),
    )


def _as_float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid numeric setting %r", value)
        return default


def _as_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid integer setting %r", value)
        return default


__all__ = [
    "AppConfig",
    "ClassifierSection",
    "PathsSection",
    "ServerSection",
    "load_config",
]
