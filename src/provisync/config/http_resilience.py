"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

IDEMPOTENT_METHODS = frozenset({"DELETE", "GET", "HEAD", "OPTIONS", "PUT"})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    # POST creates resources; replaying one could duplicate a platform or key.
    allowed_methods: frozenset[str] = IDEMPOTENT_METHODS
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({429, 502, 503, 504})
    )
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy | None = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
