"""HTTP client for the Provider API server."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Self

import httpx
from pydantic import BaseModel, ValidationError

from provisync.adapters.http_resilience import ResilienceConfig, ResilientClient
from provisync.config import ProviderApiConfig, get_provider_api_config
from provisync.domain.errors import ProviderApiError
from provisync.domain.ports import (
    BatchCreateResult,
    KeyRecord,
    ModelChangeResult,
    ModelCreate,
    ModelRecord,
    PlatformFields,
    PlatformRecord,
    ProviderApi,
)

from .schema import (
    BatchCreateRequest,
    BatchCreateResponse,
    KeyPayload,
    KeyWrite,
    ModelPayload,
    ModelWrite,
    PlatformPayload,
    PlatformWrite,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from provisync.domain.model import ModelDraft

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for field_name in ("error", "message", "detail"):
            value = payload.get(field_name)
            if isinstance(value, str) and value.strip():
                return value
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


def _validate[TModel: BaseModel](model: type[TModel], payload: object) -> TModel:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ProviderApiError(f"Unexpected {model.__name__} payload: {exc}") from exc


def _validate_list[TModel: BaseModel](model: type[TModel], payload: object) -> list[TModel]:
    if not isinstance(payload, list):
        raise ProviderApiError(f"Expected a list of {model.__name__}, got {type(payload).__name__}")
    return [_validate(model, item) for item in payload]


@dataclass(slots=True)
class HttpProviderApi:
    """:class:`ProviderApi` over HTTP.

    Use as an async context manager to share one connection pool across
    calls; outside of one, each call opens a short-lived client.
    """

    config: ProviderApiConfig = field(default_factory=get_provider_api_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> Self:
        self._client = self.client_factory(self.config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def create_platform(self, fields: PlatformFields) -> PlatformRecord:
        body = PlatformWrite.from_fields(fields).model_dump(by_alias=True, mode="json")
        payload = await self._request("POST", "/api/platforms", json=body)
        record = _validate(PlatformPayload, payload).to_record()
        log.info("Created platform %d (%s)", record.id, record.name)
        return record

    async def get_platform(self, platform_id: int) -> PlatformRecord:
        payload = await self._request("GET", f"/api/platforms/{platform_id}")
        return _validate(PlatformPayload, payload).to_record()

    async def update_platform(self, platform_id: int, fields: PlatformFields) -> PlatformRecord:
        body = PlatformWrite.from_fields(fields).model_dump(by_alias=True, mode="json")
        payload = await self._request("PUT", f"/api/platforms/{platform_id}", json=body)
        return _validate(PlatformPayload, payload).to_record()

    async def list_keys(self, platform_id: int) -> list[KeyRecord]:
        payload = await self._request("GET", f"/api/platforms/{platform_id}/keys")
        return [item.to_record() for item in _validate_list(KeyPayload, payload)]

    async def create_key(self, platform_id: int, value: str) -> KeyRecord:
        body = KeyWrite(value=value).model_dump()
        payload = await self._request("POST", f"/api/platforms/{platform_id}/keys", json=body)
        return _validate(KeyPayload, payload).to_record()

    async def update_key(self, platform_id: int, key_id: int, value: str) -> KeyRecord:
        body = KeyWrite(value=value).model_dump()
        payload = await self._request(
            "PUT", f"/api/platforms/{platform_id}/keys/{key_id}", json=body
        )
        return _validate(KeyPayload, payload).to_record()

    async def delete_key(self, platform_id: int, key_id: int) -> None:
        await self._request("DELETE", f"/api/platforms/{platform_id}/keys/{key_id}")

    async def list_models(self, platform_id: int) -> list[ModelRecord]:
        payload = await self._request("GET", f"/api/platforms/{platform_id}/models")
        return [item.to_record() for item in _validate_list(ModelPayload, payload)]

    async def create_models_batch(
        self, platform_id: int, models: Sequence[ModelCreate]
    ) -> BatchCreateResult:
        body = BatchCreateRequest(
            models=[ModelWrite.from_create(model) for model in models]
        ).model_dump()
        payload = await self._request(
            "POST", f"/api/platforms/{platform_id}/models/batch", json=body
        )
        response = _validate(BatchCreateResponse, payload)
        return BatchCreateResult(
            created_count=response.created_count, total_count=response.total_count
        )

    async def update_model(
        self, platform_id: int, model_id: int, model: ModelCreate
    ) -> ModelRecord:
        body = ModelWrite.from_create(model).model_dump()
        payload = await self._request(
            "PUT", f"/api/platforms/{platform_id}/models/{model_id}", json=body
        )
        return _validate(ModelPayload, payload).to_record()

    async def delete_model(self, platform_id: int, model_id: int) -> None:
        await self._request("DELETE", f"/api/platforms/{platform_id}/models/{model_id}")

    async def apply_model_changes(
        self,
        platform_id: int,
        selected: Sequence[ModelDraft],
        removed: Sequence[ModelDraft],
    ) -> ModelChangeResult:
        """Create the unsaved selected models in one batch, then delete the removed ones."""

        to_create = [
            ModelCreate(
                name=model.name,
                alias=model.alias,
                key_ids=tuple(
                    ref.id for ref in model.associations if ref.is_persisted and ref.id is not None
                ),
            )
            for model in selected
            if not model.is_persisted
        ]
        added = 0
        if to_create:
            batch = await self.create_models_batch(platform_id, to_create)
            added = batch.created_count

        removed_count = 0
        for model in removed:
            if not model.is_persisted:
                continue
            await self.delete_model(platform_id, model.id)
            removed_count += 1
        return ModelChangeResult(added_count=added, removed_count=removed_count)

    async def _request(self, method: str, path: str, *, json: object = None) -> object:
        if self._client is not None:
            return await self._send(self._client, method, path, json=json)
        async with self.client_factory(self.config.resilience) as client:
            return await self._send(client, method, path, json=json)

    async def _send(
        self, client: ResilientClient, method: str, path: str, *, json: object
    ) -> object:
        try:
            if json is None:
                response = await client.request(method, path)
            else:
                response = await client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            raise ProviderApiError(f"{method} {path} timed out", timeout=True) from exc
        except httpx.HTTPError as exc:
            raise ProviderApiError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            log.debug("%s %s -> %d: %s", method, path, response.status_code, message)
            raise ProviderApiError(message, status=response.status_code, body=response.text)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderApiError(
                f"{method} {path} returned a body that is not JSON",
                status=response.status_code,
                body=response.text,
            ) from exc


if TYPE_CHECKING:
    _api_check: ProviderApi = HttpProviderApi()
