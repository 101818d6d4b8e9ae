"""Connectivity probe for a Provider API server."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from provisync.adapters.http_resilience import ResilienceConfig, ResilientClient
from provisync.config import PROBE_TIMEOUT_SECONDS

if TYPE_CHECKING:
    from collections.abc import Callable

    from provisync.config import ProviderApiConfig

log = getLogger(__name__)

PING_PATH = "/api/ping"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    success: bool
    status: int | None = None


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


async def probe_provider_api(
    config: ProviderApiConfig,
    *,
    timeout: float = PROBE_TIMEOUT_SECONDS,
    client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
) -> ProbeResult:
    """Ping the server once; no answer within ``timeout`` seconds counts as failure."""

    resilience = replace(config.resilience, retry=None, ratelimit=None, timeout_seconds=timeout)
    async with client_factory(resilience) as client:
        try:
            async with asyncio.timeout(timeout):
                response = await client.get(PING_PATH)
        except TimeoutError:
            log.warning("Ping to %s gave no answer within %.1fs", config.base_url, timeout)
            return ProbeResult(success=False)
        except httpx.HTTPError as exc:
            log.warning("Ping to %s failed: %s", config.base_url, exc)
            return ProbeResult(success=False)
    return ProbeResult(success=response.is_success, status=response.status_code)
