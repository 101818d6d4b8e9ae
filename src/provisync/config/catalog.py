"""Vendor model-catalog configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env_var
from .http_resilience import ResilienceConfig, RetryPolicy

CATALOG_TIMEOUT_SECONDS = 30.0
AZURE_DEPLOYMENTS_API_VERSION = "2023-03-15-preview"


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    resilience: ResilienceConfig
    azure_api_version: str = AZURE_DEPLOYMENTS_API_VERSION


def get_catalog_config() -> CatalogConfig:
    timeout = optional_float_env_var("PROVISYNC_CATALOG_TIMEOUT") or CATALOG_TIMEOUT_SECONDS
    # base_url differs per platform, so requests carry absolute URLs.
    resilience = ResilienceConfig(
        name="catalog",
        timeout_seconds=timeout,
        retry=RetryPolicy(total=1),
    )
    return CatalogConfig(resilience=resilience)
