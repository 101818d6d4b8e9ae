"""Pydantic models describing Provider API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from provisync.domain.model import ApiFormat, RateLimitSettings
from provisync.domain.ports import (
    KeyRecord,
    ModelCreate,
    ModelRecord,
    PlatformFields,
    PlatformRecord,
)


class ProviderApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RateLimitPayload(ProviderApiModel):
    rpm: int = 0
    tpm: int = 0


class KeyLinkPayload(ProviderApiModel):
    id: int


class PlatformWrite(ProviderApiModel):
    name: str
    api_format: ApiFormat = Field(alias="format")
    base_url: str
    rate_limit: RateLimitPayload = Field(default_factory=RateLimitPayload)
    custom_headers: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_fields(cls, fields: PlatformFields) -> PlatformWrite:
        return cls(
            name=fields.name,
            api_format=fields.api_format,
            base_url=fields.base_url,
            rate_limit=RateLimitPayload(rpm=fields.rate_limit.rpm, tpm=fields.rate_limit.tpm),
            custom_headers=dict(fields.custom_headers),
        )


class PlatformPayload(PlatformWrite):
    id: int

    @field_validator("custom_headers", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return {} if value is None else value

    def to_record(self) -> PlatformRecord:
        return PlatformRecord(
            id=self.id,
            name=self.name,
            api_format=self.api_format,
            base_url=self.base_url,
            rate_limit=RateLimitSettings(rpm=self.rate_limit.rpm, tpm=self.rate_limit.tpm),
            custom_headers=dict(self.custom_headers),
        )


class KeyWrite(ProviderApiModel):
    value: str


class KeyPayload(ProviderApiModel):
    id: int
    value: str = ""

    def to_record(self) -> KeyRecord:
        return KeyRecord(id=self.id, value=self.value)


class ModelWrite(ProviderApiModel):
    name: str
    alias: str = ""
    api_keys: list[KeyLinkPayload] = Field(default_factory=list)

    @classmethod
    def from_create(cls, model: ModelCreate) -> ModelWrite:
        return cls(
            name=model.name,
            alias=model.alias,
            api_keys=[KeyLinkPayload(id=key_id) for key_id in model.key_ids],
        )


class ModelPayload(ProviderApiModel):
    id: int
    name: str
    alias: str = ""
    api_keys: list[KeyLinkPayload] = Field(default_factory=list)

    @field_validator("alias", mode="before")
    @classmethod
    def _alias_none_to_blank(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("api_keys", mode="before")
    @classmethod
    def _keys_none_to_empty(cls, value: object) -> object:
        return [] if value is None else value

    def to_record(self) -> ModelRecord:
        return ModelRecord(
            id=self.id,
            name=self.name,
            alias=self.alias,
            key_ids=tuple(link.id for link in self.api_keys),
        )


class BatchCreateRequest(ProviderApiModel):
    models: list[ModelWrite]


class BatchCreateResponse(ProviderApiModel):
    created_count: int
    total_count: int
    models: list[ModelPayload] = Field(default_factory=list)
