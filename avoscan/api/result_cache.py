from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from ..ai.types import ClassificationResult

logger = logging.getLogger(__name__)


class LastResultCache:
    """Keep the most recent classification, optionally persisted to JSON."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._result: ClassificationResult | None = None
        if self._path is not None:
            self._load()

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            self._result = ClassificationResult.from_dict(data)
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable cached result %s: %s", self._path, exc)
            self._result = None

    def _save(self) -> None:
        if self._path is None:
            return
        try:
            if self._result is None:
                self._path.unlink(missing_ok=True)
                return
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._result.to_dict(), indent=2, sort_keys=True),
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("Failed to persist last result to %s: %s", self._path, exc)

    def get(self) -> Optional[ClassificationResult]:
        with self._lock:
            return self._result

    def update(self, result: ClassificationResult) -> None:
        with self._lock:
            self._result = result
            self._save()

    def clear(self) -> None:
        with self._lock:
            self._result = None
            self._save()


__all__ = ["LastResultCache"]
