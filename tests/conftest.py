from __future__ import annotations

import pytest

from tests.support.fakes import FakeModelCatalog, FakeProviderApi, RecordingNotifier


@pytest.fixture(autouse=True)
def provider_api_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROVISYNC_API_URL", "https://provider-api.test")
    monkeypatch.delenv("PROVISYNC_API_TOKEN", raising=False)
    monkeypatch.delenv("PROVISYNC_CATALOG_TIMEOUT", raising=False)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fake_api() -> FakeProviderApi:
    return FakeProviderApi()


@pytest.fixture
def fake_catalog() -> FakeModelCatalog:
    return FakeModelCatalog()
