"""JSON provider definitions used to seed an add-mode draft."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from provisync.domain.model import (
    ApiFormat,
    Draft,
    KeyDraft,
    ModelDraft,
    PlatformDraft,
    RateLimitSettings,
)


class DefinitionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class RateLimitDefinition(DefinitionModel):
    rpm: int = Field(default=0, ge=0)
    tpm: int = Field(default=0, ge=0)


class PlatformDefinition(DefinitionModel):
    name: str = Field(min_length=1)
    api_format: ApiFormat = Field(default=ApiFormat.OPENAI, alias="format")
    base_url: str = Field(min_length=1)
    rate_limit: RateLimitDefinition = Field(default_factory=RateLimitDefinition)
    custom_headers: dict[str, str] = Field(default_factory=dict)


class ModelDefinition(DefinitionModel):
    name: str = Field(min_length=1)
    alias: str = ""


class ProviderDefinition(DefinitionModel):
    """Top-level document: a platform, its key values and its models.

    Keys may be given as plain strings or ``{"value": ...}`` objects and
    models as plain names or ``{"name": ..., "alias": ...}`` objects.
    """

    platform: PlatformDefinition
    api_keys: list[str] = Field(default_factory=list)
    models: list[ModelDefinition] = Field(default_factory=list)

    @field_validator("api_keys", mode="before")
    @classmethod
    def _key_objects_to_values(cls, value: object) -> object:
        if isinstance(value, list):
            return [item.get("value") if isinstance(item, dict) else item for item in value]
        return value

    @field_validator("models", mode="before")
    @classmethod
    def _model_names_to_objects(cls, value: object) -> object:
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value

    def to_draft(self) -> Draft:
        """Build an add-mode draft; every model is linked to every key."""

        platform = PlatformDraft(
            name=self.platform.name,
            api_format=self.platform.api_format,
            base_url=self.platform.base_url.rstrip("/"),
            rate_limit=RateLimitSettings(
                rpm=self.platform.rate_limit.rpm, tpm=self.platform.rate_limit.tpm
            ),
            custom_headers=dict(self.platform.custom_headers),
            dirty=True,
        )
        keys = [KeyDraft.new(value) for value in self.api_keys if value.strip()]
        models = [
            ModelDraft(
                name=model.name,
                alias=model.alias,
                associations=[key.ref for key in keys],
                dirty=True,
            )
            for model in self.models
        ]
        return Draft(platform=platform, keys=keys, models=models)


def load_provider_file(path: Path | str) -> Draft:
    """Read a provider definition; malformed input raises ``pydantic.ValidationError``."""

    text = Path(path).read_text(encoding="utf-8")
    return ProviderDefinition.model_validate_json(text).to_draft()
