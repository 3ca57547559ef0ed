from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from .types import ModelBackendError, RawPrediction

logger = logging.getLogger(__name__)


@dataclass
class RemoteModelClient:
    """Ask an HTTP-served image model for ranked class probabilities.

    The model lives at ``model_url``: ``metadata.json`` lists its labels and
    ``predict`` accepts a base64 JPEG and answers with a list of
    ``{"className", "probability"}`` items.
    """

    model_url: str
    timeout: float = 30.0
    session: requests.Session = field(default_factory=requests.Session)
    labels: list[str] = field(default_factory=list)

    def load(self) -> None:
        url = self._endpoint("metadata.json")
        data = self._request("GET", url)
        if not isinstance(data, dict):
            raise ModelBackendError("Model metadata must be a JSON object")
        raw_labels = data.get("labels") or []
        self.labels = [str(label) for label in raw_labels if str(label).strip()]
        logger.info("Model metadata loaded url=%s labels=%s", url, self.labels)

    def predict(self, image_bytes: bytes) -> list[RawPrediction]:
        payload = {"image_base64": base64.b64encode(image_bytes).decode("ascii")}
        data = self._request("POST", self._endpoint("predict"), json=payload)
        return self._parse_predictions(data)

    def dispose(self) -> None:
        self.session.close()
        self.labels = []

    def _endpoint(self, name: str) -> str:
        return f"{self.model_url.rstrip('/')}/{name}"

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.Timeout as exc:
            raise ModelBackendError(f"Timed out waiting for model at {url}") from exc
        except requests.RequestException as exc:
            raise ModelBackendError(f"Failed to reach model at {url}: {exc}") from exc
        except ValueError as exc:
            raise ModelBackendError(f"Model at {url} did not return JSON") from exc

    def _parse_predictions(self, data: Any) -> list[RawPrediction]:
        items = data.get("predictions") if isinstance(data, dict) else data
        if not isinstance(items, list) or not items:
            raise ModelBackendError("Unexpected prediction format from model")

        predictions: list[RawPrediction] = []
        for item in items:
            if not isinstance(item, dict):
                raise ModelBackendError("Unexpected prediction entry from model")
            name = item.get("className") or item.get("label")
            if not name:
                raise ModelBackendError("Model prediction is missing a class name")
            value = item.get("probability", item.get("score", 0.0))
            try:
                probability = float(value)
            except (TypeError, ValueError) as exc:
                raise ModelBackendError(
                    f"Model returned a non-numeric probability for {name!r}: {value!r}"
                ) from exc
            predictions.append(RawPrediction(class_name=str(name), probability=probability))
        predictions.sort(key=lambda entry: entry.probability, reverse=True)
        return predictions


__all__ = ["RemoteModelClient"]
