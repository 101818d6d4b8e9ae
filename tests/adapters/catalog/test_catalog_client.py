from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from provisync.adapters.catalog import HttpModelCatalog, build_listing_request, parse_listing
from provisync.adapters.http_resilience import ResilienceConfig, ResilientClient
from provisync.domain import messages
from provisync.domain.errors import FetchError
from provisync.domain.model import ApiFormat, ErrorKind
from provisync.domain.ports import CatalogModel

KEY = "sk-vendor-key-000001"


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def _fetch(
    handler: Callable[[httpx.Request], httpx.Response],
    api_format: ApiFormat = ApiFormat.OPENAI,
    base_url: str = "https://vendor.example",
    headers: dict[str, str] | None = None,
) -> list[CatalogModel]:
    catalog = HttpModelCatalog(client_factory=_make_client_factory(handler))
    return asyncio.run(catalog.fetch_models_for_key(KEY, api_format, base_url, headers))


def test_openai_listing_uses_bearer_and_custom_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"object": "list", "data": [{"id": "gpt-4"}, {"id": "o1"}]})

    models = _fetch(handler, base_url="https://vendor.example/", headers={"X-Org": "acme"})

    request = seen[0]
    assert request.url == "https://vendor.example/v1/models"
    assert request.headers["Authorization"] == f"Bearer {KEY}"
    assert request.headers["X-Org"] == "acme"
    assert models == [CatalogModel(name="gpt-4"), CatalogModel(name="o1")]


def test_ollama_listing_uses_tag_names_as_alias() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/tags"
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"models": [{"name": "llama3:8b", "size": 1}]})

    models = _fetch(handler, api_format=ApiFormat.OLLAMA)

    assert models == [CatalogModel(name="llama3:8b", alias="llama3:8b")]


def test_azure_listing_sends_api_key_and_version() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"id": "prod-gpt4"}]})

    models = _fetch(handler, api_format=ApiFormat.AZURE_OPENAI)

    request = seen[0]
    assert request.url.path == "/openai/deployments"
    assert request.url.params["api-version"] == "2023-03-15-preview"
    assert request.headers["api-key"] == KEY
    assert models == [CatalogModel(name="prod-gpt4", alias="prod-gpt4")]


@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (401, ErrorKind.FETCH_UNAUTHORIZED),
        (404, ErrorKind.FETCH_ENDPOINT_NOT_FOUND),
        (500, ErrorKind.FETCH_SERVER_ERROR),
        (429, ErrorKind.FETCH_CLIENT_ERROR),
    ],
)
def test_error_statuses_are_classified(status: int, kind: ErrorKind) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": {"message": "nope"}})

    with pytest.raises(FetchError) as excinfo:
        _fetch(handler)

    assert excinfo.value.kind is kind
    assert excinfo.value.status == status


def test_malformed_client_error_body_is_shown_raw() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="<html>" + "x" * 300)

    with pytest.raises(FetchError) as excinfo:
        _fetch(handler)

    message = messages.describe_error(excinfo.value)
    assert message.startswith("Fetching models failed (400): <html>")
    assert message.endswith("...")


def test_payload_without_model_array_is_a_client_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"object": "list"})

    with pytest.raises(FetchError) as excinfo:
        _fetch(handler)

    assert excinfo.value.kind is ErrorKind.FETCH_CLIENT_ERROR
    assert excinfo.value.status == 400


def test_body_that_is_not_json_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="ok")

    with pytest.raises(FetchError) as excinfo:
        _fetch(handler)

    assert excinfo.value.kind is ErrorKind.FETCH_FAILED


def test_timeout_is_classified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("too slow", request=request)

    with pytest.raises(FetchError) as excinfo:
        _fetch(handler)

    assert excinfo.value.kind is ErrorKind.FETCH_TIMEOUT


def test_connection_failure_is_generic() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(FetchError) as excinfo:
        _fetch(handler)

    assert excinfo.value.kind is ErrorKind.FETCH_FAILED


@pytest.mark.parametrize("api_format", [ApiFormat.GEMINI, ApiFormat.ANTHROPIC])
def test_formats_without_listing_are_rejected(api_format: ApiFormat) -> None:
    with pytest.raises(FetchError) as excinfo:
        build_listing_request(api_format, "https://vendor.example", KEY, azure_api_version="v")

    assert excinfo.value.kind is ErrorKind.FETCH_FAILED


def test_parse_listing_keeps_server_order() -> None:
    payload = {"data": [{"id": "b"}, {"id": "a"}, {"id": "b"}]}

    assert [model.name for model in parse_listing(ApiFormat.OPENAI, payload)] == ["b", "a", "b"]
