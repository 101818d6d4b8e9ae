"""Pydantic models describing vendor model-listing payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CatalogBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class OpenAIModelEntry(CatalogBaseModel):
    id: str


class OpenAIModelList(CatalogBaseModel):
    """``GET /v1/models`` and Azure ``GET /openai/deployments``."""

    data: list[OpenAIModelEntry]


class OllamaModelEntry(CatalogBaseModel):
    name: str


class OllamaTagList(CatalogBaseModel):
    """``GET /api/tags``."""

    models: list[OllamaModelEntry]
