"""Hand-written fakes for the Provider API, the model catalog and notices."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from provisync.domain.errors import ProviderApiError
from provisync.domain.model import ApiFormat
from provisync.domain.ports import (
    BatchCreateResult,
    CatalogModel,
    KeyRecord,
    ModelCatalog,
    ModelChangeResult,
    ModelCreate,
    ModelRecord,
    NoticeLevel,
    Notifier,
    PlatformFields,
    PlatformRecord,
    ProviderApi,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from provisync.domain.errors import FetchError
    from provisync.domain.model import ModelDraft


@dataclass
class RecordingNotifier:
    notices: list[tuple[NoticeLevel, str]] = field(default_factory=list)

    def notify(self, message: str, *, level: NoticeLevel = NoticeLevel.INFO) -> None:
        self.notices.append((level, message))

    @property
    def messages(self) -> list[str]:
        return [message for _, message in self.notices]


@dataclass
class FakeProviderApi:
    """In-memory Provider API that records every call."""

    platforms: dict[int, PlatformRecord] = field(default_factory=dict)
    keys: dict[int, list[KeyRecord]] = field(default_factory=dict)
    models: dict[int, list[ModelRecord]] = field(default_factory=dict)
    calls: list[tuple[object, ...]] = field(default_factory=list)
    platform_error: Exception | None = None
    get_platform_error: Exception | None = None
    list_keys_error: Exception | None = None
    batch_error: Exception | None = None
    # Raised by the next update_model call only.
    update_model_error: Exception | None = None
    failing_key_values: set[str] = field(default_factory=set)
    batch_created_cap: int | None = None
    _next_id: int = 100

    def seed(
        self,
        *,
        platform_id: int = 1,
        name: str = "Vendor",
        api_format: ApiFormat = ApiFormat.OPENAI,
        base_url: str = "https://vendor.example",
        keys: Sequence[KeyRecord] = (),
        models: Sequence[ModelRecord] = (),
    ) -> None:
        self.platforms[platform_id] = PlatformRecord(
            id=platform_id, name=name, api_format=api_format, base_url=base_url
        )
        self.keys[platform_id] = list(keys)
        self.models[platform_id] = list(models)

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def call_names(self) -> list[object]:
        return [call[0] for call in self.calls]

    async def create_platform(self, fields: PlatformFields) -> PlatformRecord:
        self.calls.append(("create_platform", fields.name))
        if self.platform_error is not None:
            raise self.platform_error
        record = PlatformRecord(
            id=self._new_id(),
            name=fields.name,
            api_format=fields.api_format,
            base_url=fields.base_url,
            rate_limit=fields.rate_limit,
            custom_headers=dict(fields.custom_headers),
        )
        self.platforms[record.id] = record
        self.keys[record.id] = []
        self.models[record.id] = []
        return record

    async def get_platform(self, platform_id: int) -> PlatformRecord:
        self.calls.append(("get_platform", platform_id))
        if self.get_platform_error is not None:
            raise self.get_platform_error
        try:
            return self.platforms[platform_id]
        except KeyError:
            raise ProviderApiError("not found", status=404) from None

    async def update_platform(self, platform_id: int, fields: PlatformFields) -> PlatformRecord:
        self.calls.append(("update_platform", platform_id, fields.name))
        record = PlatformRecord(
            id=platform_id,
            name=fields.name,
            api_format=fields.api_format,
            base_url=fields.base_url,
            rate_limit=fields.rate_limit,
            custom_headers=dict(fields.custom_headers),
        )
        self.platforms[platform_id] = record
        return record

    async def list_keys(self, platform_id: int) -> list[KeyRecord]:
        self.calls.append(("list_keys", platform_id))
        if self.list_keys_error is not None:
            raise self.list_keys_error
        return list(self.keys.get(platform_id, []))

    async def create_key(self, platform_id: int, value: str) -> KeyRecord:
        self.calls.append(("create_key", platform_id, value))
        if value in self.failing_key_values:
            raise ProviderApiError(f"key {value} rejected", status=400)
        record = KeyRecord(id=self._new_id(), value=value)
        self.keys.setdefault(platform_id, []).append(record)
        return record

    async def update_key(self, platform_id: int, key_id: int, value: str) -> KeyRecord:
        self.calls.append(("update_key", platform_id, key_id, value))
        record = KeyRecord(id=key_id, value=value)
        self.keys[platform_id] = [
            record if key.id == key_id else key for key in self.keys.get(platform_id, [])
        ]
        return record

    async def delete_key(self, platform_id: int, key_id: int) -> None:
        self.calls.append(("delete_key", platform_id, key_id))
        self.keys[platform_id] = [key for key in self.keys.get(platform_id, []) if key.id != key_id]

    async def list_models(self, platform_id: int) -> list[ModelRecord]:
        self.calls.append(("list_models", platform_id))
        return list(self.models.get(platform_id, []))

    async def create_models_batch(
        self, platform_id: int, models: Sequence[ModelCreate]
    ) -> BatchCreateResult:
        self.calls.append(("create_models_batch", platform_id, tuple(models)))
        if self.batch_error is not None:
            raise self.batch_error
        created = list(models)
        if self.batch_created_cap is not None:
            created = created[: self.batch_created_cap]
        for model in created:
            self.models.setdefault(platform_id, []).append(
                ModelRecord(
                    id=self._new_id(), name=model.name, alias=model.alias, key_ids=model.key_ids
                )
            )
        return BatchCreateResult(created_count=len(created), total_count=len(models))

    async def update_model(
        self, platform_id: int, model_id: int, model: ModelCreate
    ) -> ModelRecord:
        self.calls.append(("update_model", platform_id, model_id, model))
        if self.update_model_error is not None:
            error, self.update_model_error = self.update_model_error, None
            raise error
        record = ModelRecord(id=model_id, name=model.name, alias=model.alias, key_ids=model.key_ids)
        self.models[platform_id] = [
            record if existing.id == model_id else existing
            for existing in self.models.get(platform_id, [])
        ]
        return record

    async def delete_model(self, platform_id: int, model_id: int) -> None:
        self.calls.append(("delete_model", platform_id, model_id))
        self.models[platform_id] = [
            model for model in self.models.get(platform_id, []) if model.id != model_id
        ]

    async def apply_model_changes(
        self,
        platform_id: int,
        selected: Sequence[ModelDraft],
        removed: Sequence[ModelDraft],
    ) -> ModelChangeResult:
        self.calls.append(("apply_model_changes", platform_id, len(selected), len(removed)))
        new = [
            ModelCreate(
                name=model.name,
                alias=model.alias,
                key_ids=tuple(ref.id for ref in model.associations if ref.id),
            )
            for model in selected
            if not model.is_persisted
        ]
        added = 0
        if new:
            added = (await self.create_models_batch(platform_id, new)).created_count
        removed_ids = {model.id for model in removed if model.is_persisted}
        self.models[platform_id] = [
            model for model in self.models.get(platform_id, []) if model.id not in removed_ids
        ]
        return ModelChangeResult(added_count=added, removed_count=len(removed_ids))


@dataclass
class FakeModelCatalog:
    models: list[CatalogModel] = field(default_factory=list)
    error: FetchError | None = None
    calls: list[tuple[str, ApiFormat, str]] = field(default_factory=list)
    during_fetch: Callable[[], None] | None = None

    async def fetch_models_for_key(
        self,
        key_value: str,
        api_format: ApiFormat,
        base_url: str,
        custom_headers: Mapping[str, str] | None = None,
    ) -> list[CatalogModel]:
        self.calls.append((key_value, api_format, base_url))
        if self.during_fetch is not None:
            self.during_fetch()
        if self.error is not None:
            raise self.error
        return list(self.models)


def catalog(*names: str) -> list[CatalogModel]:
    return [CatalogModel(name=name) for name in names]


if TYPE_CHECKING:
    _api_check: ProviderApi = FakeProviderApi()
    _catalog_check: ModelCatalog = FakeModelCatalog()
    _notifier_check: Notifier = RecordingNotifier()
