from __future__ import annotations

import asyncio
import json
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from provisync.adapters.http_resilience import ResilienceConfig, ResilientClient
from provisync.adapters.provider_api import HttpProviderApi
from provisync.config import MissingConfigurationError, get_provider_api_config
from provisync.domain.errors import ProviderApiError
from provisync.domain.model import ApiFormat, KeyDraft, ModelDraft, RateLimitSettings
from provisync.domain.ports import ModelCreate, PlatformFields
from tests.support.drafts import persisted_key, persisted_model


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            headers=dict(resilience.default_headers or {}),
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def _api(handler: Callable[[httpx.Request], httpx.Response]) -> HttpProviderApi:
    return HttpProviderApi(client_factory=_make_client_factory(handler))


def _platform_json(platform_id: int = 7, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": platform_id,
        "name": "Vendor",
        "format": "OpenAI",
        "base_url": "https://vendor.example",
        "rate_limit": {"rpm": 60, "tpm": 1000},
        "custom_headers": {"X-Team": "core"},
    }
    payload.update(overrides)
    return payload


def test_create_platform_posts_wire_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json=_platform_json())

    fields = PlatformFields(
        name="Vendor",
        api_format=ApiFormat.OPENAI,
        base_url="https://vendor.example",
        rate_limit=RateLimitSettings(rpm=60, tpm=1000),
        custom_headers={"X-Team": "core"},
    )

    record = asyncio.run(_api(handler).create_platform(fields))

    request = seen[0]
    assert request.method == "POST"
    assert request.url == "https://provider-api.test/api/platforms"
    assert json.loads(request.content) == {
        "name": "Vendor",
        "format": "OpenAI",
        "base_url": "https://vendor.example",
        "rate_limit": {"rpm": 60, "tpm": 1000},
        "custom_headers": {"X-Team": "core"},
    }
    assert record.id == 7
    assert record.api_format is ApiFormat.OPENAI
    assert record.rate_limit == RateLimitSettings(rpm=60, tpm=1000)


def test_get_platform_tolerates_null_headers() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/platforms/7"
        return httpx.Response(200, json=_platform_json(custom_headers=None))

    record = asyncio.run(_api(handler).get_platform(7))

    assert record.custom_headers == {}


def test_token_is_sent_as_bearer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROVISYNC_API_TOKEN", "admin-token")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    asyncio.run(_api(handler).list_keys(7))

    assert seen[0].headers["Authorization"] == "Bearer admin-token"


def test_list_models_translates_key_links() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/platforms/7/models"
        return httpx.Response(
            200,
            json=[
                {"id": 10, "name": "gpt-4", "alias": None, "api_keys": [{"id": 1}, {"id": 2}]},
                {"id": 11, "name": "o1", "api_keys": None},
            ],
        )

    models = asyncio.run(_api(handler).list_models(7))

    assert [(model.id, model.name, model.alias, model.key_ids) for model in models] == [
        (10, "gpt-4", "", (1, 2)),
        (11, "o1", "", ()),
    ]


def test_list_response_that_is_not_a_list_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": []})

    with pytest.raises(ProviderApiError, match="Expected a list"):
        asyncio.run(_api(handler).list_keys(7))


def test_create_models_batch_sends_key_links() -> None:
    bodies: list[object] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/platforms/7/models/batch"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"created_count": 1, "total_count": 2})

    result = asyncio.run(
        _api(handler).create_models_batch(
            7,
            [
                ModelCreate(name="gpt-4", key_ids=(1,)),
                ModelCreate(name="o1", alias="reasoning", key_ids=(1, 2)),
            ],
        )
    )

    assert bodies == [
        {
            "models": [
                {"name": "gpt-4", "alias": "", "api_keys": [{"id": 1}]},
                {"name": "o1", "alias": "reasoning", "api_keys": [{"id": 1}, {"id": 2}]},
            ]
        }
    ]
    assert (result.created_count, result.total_count) == (1, 2)


def test_error_status_raises_with_server_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"error": "name already taken"})

    with pytest.raises(ProviderApiError) as excinfo:
        asyncio.run(_api(handler).create_key(7, "sk-duplicate-key-01"))

    error = excinfo.value
    assert str(error) == "name already taken"
    assert error.status == 422
    assert error.is_auth_error is False


def test_unauthorized_is_flagged() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="nope")

    with pytest.raises(ProviderApiError) as excinfo:
        asyncio.run(_api(handler).get_platform(7))

    assert excinfo.value.is_auth_error is True
    assert str(excinfo.value) == "HTTP 401 Unauthorized"


def test_timeout_is_reported_as_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ProviderApiError) as excinfo:
        asyncio.run(_api(handler).list_models(7))

    assert excinfo.value.timeout is True


def test_delete_accepts_empty_body() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(204)

    asyncio.run(_api(handler).delete_key(7, 3))

    assert seen == [("DELETE", "/api/platforms/7/keys/3")]


def test_context_manager_shares_one_client() -> None:
    created: list[ResilientClient] = []

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[])

    inner = _make_client_factory(handler)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = inner(resilience)
        created.append(client)
        return client

    async def scenario() -> None:
        async with HttpProviderApi(client_factory=factory) as api:
            await api.list_keys(7)
            await api.list_models(7)

    asyncio.run(scenario())

    assert len(created) == 1


def test_apply_model_changes_creates_then_deletes() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.method == "POST":
            return httpx.Response(200, json={"created_count": 1, "total_count": 1})
        return httpx.Response(204)

    key = persisted_key(1)
    fresh = ModelDraft(name="o1", associations=[key.ref, KeyDraft.new("sk-unsaved-key-0001").ref])
    kept = persisted_model(10, "gpt-4", key)
    gone = persisted_model(11, "gpt-3.5", key)

    result = asyncio.run(_api(handler).apply_model_changes(7, [kept, fresh], [gone]))

    assert seen == [
        ("POST", "/api/platforms/7/models/batch"),
        ("DELETE", "/api/platforms/7/models/11"),
    ]
    assert (result.added_count, result.removed_count) == (1, 1)


def test_missing_base_url_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROVISYNC_API_URL")

    with pytest.raises(MissingConfigurationError, match="PROVISYNC_API_URL"):
        get_provider_api_config()
