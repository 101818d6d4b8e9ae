"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from provisync.adapters.catalog import HttpModelCatalog
from provisync.adapters.probe import ProbeResult, probe_provider_api
from provisync.adapters.provider_api import HttpProviderApi
from provisync.adapters.provider_file import load_provider_file
from provisync.config import get_provider_api_config
from provisync.domain.store import DraftProviderStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping
    from pathlib import Path

    from provisync.config import ProviderApiConfig
    from provisync.domain.creation import CreationResult
    from provisync.domain.edit_sync import EditSyncReport
    from provisync.domain.model import ApiFormat
    from provisync.domain.ports import (
        CatalogModel,
        ModelCatalog,
        ModelChangeResult,
        Notifier,
        ProviderApi,
    )
    from provisync.domain.reconciliation import FetchOutcome, ModelDiff, SingleKeyConfirmation

DiffConfirmer = Callable[["ModelDiff"], bool]

log = getLogger(__name__)


@dataclass(slots=True)
class SyncModelsResult:
    outcome: FetchOutcome
    confirmation: SingleKeyConfirmation | ModelChangeResult | None = None
    report: EditSyncReport | None = None
    cancelled: bool = False


@asynccontextmanager
async def _provider_api(api: ProviderApi | None) -> AsyncIterator[ProviderApi]:
    if api is not None:
        yield api
        return
    async with HttpProviderApi() as http_api:
        yield http_api


def create_provider_from_file(
    path: Path | str,
    *,
    api: ProviderApi | None = None,
    notifier: Notifier | None = None,
) -> CreationResult:
    """Create the provider described by a JSON definition file."""

    draft = load_provider_file(path)
    log.info(
        "Creating provider %r: %d key(s), %d model(s)",
        draft.platform.name,
        len(draft.keys),
        len(draft.models),
    )

    async def run() -> CreationResult:
        async with _provider_api(api) as provider_api:
            store = DraftProviderStore(provider_api, HttpModelCatalog(), notifier)
            store.open(draft)
            return await store.create_provider()

    return asyncio.run(run())


def list_catalog_models(
    *,
    api_format: ApiFormat,
    base_url: str,
    key_value: str,
    custom_headers: Mapping[str, str] | None = None,
    catalog: ModelCatalog | None = None,
) -> list[CatalogModel]:
    """List the models a vendor endpoint exposes to one key."""

    effective_catalog = catalog or HttpModelCatalog()
    return asyncio.run(
        effective_catalog.fetch_models_for_key(key_value, api_format, base_url, custom_headers)
    )


def sync_key_models(
    platform_id: int,
    key_index: int,
    *,
    confirm: DiffConfirmer | None = None,
    api: ProviderApi | None = None,
    catalog: ModelCatalog | None = None,
    notifier: Notifier | None = None,
) -> SyncModelsResult:
    """Fetch the live model list of one key of a saved provider and push the result.

    ``confirm`` decides pending diffs; without it every listed change is accepted.
    """

    async def run() -> SyncModelsResult:
        async with _provider_api(api) as provider_api:
            store = DraftProviderStore(provider_api, catalog or HttpModelCatalog(), notifier)
            draft = await store.load_for_edit(platform_id)
            if not 0 <= key_index < len(draft.keys):
                raise ValueError(
                    f"Platform {platform_id} has {len(draft.keys)} key(s); "
                    f"index {key_index + 1} is out of range"
                )
            token = draft.keys[key_index].token
            outcome = await store.fetch_models(token)

            result = SyncModelsResult(outcome=outcome)
            if outcome.diff is not None:
                if confirm is not None and not confirm(outcome.diff):
                    store.cancel_diff()
                    result.cancelled = True
                    log.info("Model changes for platform %d discarded", platform_id)
                    return result
                result.confirmation = await store.confirm_diff()

            if store.draft.is_dirty:
                result.report = await store.push_changes()
            return result

    return asyncio.run(run())


def ping_provider_api(*, config: ProviderApiConfig | None = None) -> ProbeResult:
    """Check whether the configured Provider API server answers."""

    effective_config = config or get_provider_api_config()
    return asyncio.run(probe_provider_api(effective_config))
