"""Application configuration helpers."""

from __future__ import annotations

from .catalog import CatalogConfig, get_catalog_config
from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .provider_api import (
    PROBE_TIMEOUT_SECONDS,
    ProviderApiConfig,
    build_provider_api_resilience,
    get_provider_api_config,
)

__all__ = [
    "PROBE_TIMEOUT_SECONDS",
    "CatalogConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "ProviderApiConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "build_provider_api_resilience",
    "configure_logging",
    "get_catalog_config",
    "get_provider_api_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
