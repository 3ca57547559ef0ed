from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ClassifyRequest(BaseModel):
    image_base64: str = Field(..., description="Base64 encoded image")


class ClassConfidenceModel(BaseModel):
    class_name: str
    probability: float
    confidence: int = Field(..., ge=0, le=100)


class TopPredictionModel(ClassConfidenceModel):
    is_confident: bool


class SampleModel(BaseModel):
    brightness: float
    darkness: float
    green_ratio: float
    avg_red: float
    avg_green: float
    avg_blue: float


class ClassificationResponse(BaseModel):
    predictions: List[ClassConfidenceModel]
    top_prediction: TopPredictionModel
    is_demo: bool = False
    sample: Optional[SampleModel] = None
    category: str
    emoji: str


class ModelSettingsPayload(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_url: str = Field(..., min_length=1, description="Base URL of the image model")


class ModelSettingsResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_url: Optional[str] = None
    mode: str = Field(..., description="demo, default or custom")
    loaded: bool


__all__ = [
    "ClassConfidenceModel",
    "ClassificationResponse",
    "ClassifyRequest",
    "ModelSettingsPayload",
    "ModelSettingsResponse",
    "SampleModel",
    "TopPredictionModel",
]
