"""Provider API server configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

PROVIDER_API_TIMEOUT_SECONDS = 10.0
PROBE_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class ProviderApiConfig:
    """Holds connection settings for the Provider API server."""

    base_url: str
    token: str | None
    resilience: ResilienceConfig


def build_provider_api_resilience(base_url: str, token: str | None = None) -> ResilienceConfig:
    headers = {"Content-Type": "application/json"}
    if token is not None:
        headers["Authorization"] = f"Bearer {token}"
    return ResilienceConfig(
        name="provider-api",
        base_url=base_url.rstrip("/"),
        timeout_seconds=PROVIDER_API_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=2),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        default_headers=headers,
    )


def get_provider_api_config(*, resilience: ResilienceConfig | None = None) -> ProviderApiConfig:
    values = require_env_vars(("PROVISYNC_API_URL",))
    base_url = values["PROVISYNC_API_URL"].strip()
    token = optional_env_var("PROVISYNC_API_TOKEN")
    return ProviderApiConfig(
        base_url=base_url,
        token=token,
        resilience=resilience or build_provider_api_resilience(base_url, token),
    )
