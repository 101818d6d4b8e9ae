"""Port for the remote Provider API that persists platforms, keys and models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from provisync.domain.model import ApiFormat, RateLimitSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from provisync.domain.model import ModelDraft, PlatformDraft


@dataclass(frozen=True, slots=True, kw_only=True)
class PlatformFields:
    """Writable platform attributes as sent to the server."""

    name: str
    api_format: ApiFormat
    base_url: str
    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
    custom_headers: dict[str, str] = field(default_factory=dict[str, str])

    @classmethod
    def from_draft(cls, platform: PlatformDraft) -> PlatformFields:
        return cls(
            name=platform.name,
            api_format=platform.api_format,
            base_url=platform.base_url,
            rate_limit=platform.rate_limit,
            custom_headers=dict(platform.custom_headers),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class PlatformRecord:
    id: int
    name: str
    api_format: ApiFormat
    base_url: str
    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
    custom_headers: dict[str, str] = field(default_factory=dict[str, str])


@dataclass(frozen=True, slots=True)
class KeyRecord:
    id: int
    value: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ModelRecord:
    id: int
    name: str
    alias: str = ""
    key_ids: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class ModelCreate:
    name: str
    alias: str = ""
    key_ids: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class BatchCreateResult:
    created_count: int
    total_count: int


@dataclass(frozen=True, slots=True)
class ModelChangeResult:
    added_count: int
    removed_count: int


@runtime_checkable
class ProviderApi(Protocol):
    """Asynchronous CRUD contract of the Provider API server."""

    async def create_platform(self, fields: PlatformFields) -> PlatformRecord: ...

    async def get_platform(self, platform_id: int) -> PlatformRecord: ...

    async def update_platform(self, platform_id: int, fields: PlatformFields) -> PlatformRecord: ...

    async def list_keys(self, platform_id: int) -> list[KeyRecord]: ...

    async def create_key(self, platform_id: int, value: str) -> KeyRecord: ...

    async def update_key(self, platform_id: int, key_id: int, value: str) -> KeyRecord: ...

    async def delete_key(self, platform_id: int, key_id: int) -> None: ...

    async def list_models(self, platform_id: int) -> list[ModelRecord]: ...

    async def create_models_batch(
        self, platform_id: int, models: Sequence[ModelCreate]
    ) -> BatchCreateResult: ...

    async def update_model(
        self, platform_id: int, model_id: int, model: ModelCreate
    ) -> ModelRecord: ...

    async def delete_model(self, platform_id: int, model_id: int) -> None: ...

    async def apply_model_changes(
        self,
        platform_id: int,
        selected: Sequence[ModelDraft],
        removed: Sequence[ModelDraft],
    ) -> ModelChangeResult: ...


__all__ = [
    "BatchCreateResult",
    "KeyRecord",
    "ModelChangeResult",
    "ModelCreate",
    "ModelRecord",
    "PlatformFields",
    "PlatformRecord",
    "ProviderApi",
]
