"""HTTP client listing the models a vendor endpoint offers to one key."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from provisync.adapters.http_resilience import ResilienceConfig, ResilientClient
from provisync.config import CatalogConfig, get_catalog_config
from provisync.domain.errors import FetchError
from provisync.domain.model import ApiFormat, ErrorKind, mask_key
from provisync.domain.ports import CatalogModel, ModelCatalog

from .schema import OllamaTagList, OpenAIModelList

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(frozen=True, slots=True)
class ListingRequest:
    url: str
    headers: dict[str, str]
    params: dict[str, str] = field(default_factory=dict[str, str])


def build_listing_request(
    api_format: ApiFormat,
    base_url: str,
    key_value: str,
    custom_headers: Mapping[str, str] | None = None,
    *,
    azure_api_version: str,
) -> ListingRequest:
    """Return the listing request for ``api_format``, or raise for formats without one."""

    base = base_url.rstrip("/")
    headers = dict(custom_headers or {})
    if api_format is ApiFormat.OPENAI:
        headers["Authorization"] = f"Bearer {key_value}"
        return ListingRequest(url=f"{base}/v1/models", headers=headers)
    if api_format is ApiFormat.OLLAMA:
        return ListingRequest(url=f"{base}/api/tags", headers=headers)
    if api_format is ApiFormat.AZURE_OPENAI:
        headers["api-key"] = key_value
        return ListingRequest(
            url=f"{base}/openai/deployments",
            headers=headers,
            params={"api-version": azure_api_version},
        )
    raise FetchError(
        f"Model listing is not supported for the {api_format} format",
        kind=ErrorKind.FETCH_FAILED,
    )


def parse_listing(api_format: ApiFormat, payload: object) -> list[CatalogModel]:
    """Translate a listing payload; a payload without the expected array is a client error."""

    try:
        if api_format is ApiFormat.OLLAMA:
            tags = OllamaTagList.model_validate(payload)
            return [CatalogModel(name=entry.name, alias=entry.name) for entry in tags.models]
        listing = OpenAIModelList.model_validate(payload)
    except ValidationError as exc:
        raise FetchError.from_status(400, body=json.dumps(payload)) from exc
    if api_format is ApiFormat.AZURE_OPENAI:
        return [CatalogModel(name=entry.id, alias=entry.id) for entry in listing.data]
    return [CatalogModel(name=entry.id) for entry in listing.data]


@dataclass(slots=True)
class HttpModelCatalog:
    config: CatalogConfig = field(default_factory=get_catalog_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    async def fetch_models_for_key(
        self,
        key_value: str,
        api_format: ApiFormat,
        base_url: str,
        custom_headers: Mapping[str, str] | None = None,
    ) -> list[CatalogModel]:
        request = build_listing_request(
            api_format,
            base_url,
            key_value,
            custom_headers,
            azure_api_version=self.config.azure_api_version,
        )
        async with self.client_factory(self.config.resilience) as client:
            try:
                response = await client.get(
                    request.url, headers=request.headers, params=request.params or None
                )
            except httpx.TimeoutException as exc:
                raise FetchError.timed_out(str(exc) or None) from exc
            except httpx.HTTPError as exc:
                raise FetchError(
                    f"Could not reach {request.url}: {exc}", kind=ErrorKind.FETCH_FAILED
                ) from exc

        if response.is_error:
            log.warning(
                "Listing %s with key %s failed: HTTP %d",
                request.url,
                mask_key(key_value),
                response.status_code,
            )
            raise FetchError.from_status(response.status_code, body=response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError(
                f"{request.url} returned a body that is not JSON", kind=ErrorKind.FETCH_FAILED
            ) from exc

        models = parse_listing(api_format, payload)
        log.info(
            "Fetched %d model(s) from %s with key %s", len(models), request.url, mask_key(key_value)
        )
        return models


if TYPE_CHECKING:
    _catalog_check: ModelCatalog = HttpModelCatalog()
