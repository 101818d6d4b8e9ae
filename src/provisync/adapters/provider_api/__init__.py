"""Public interface for the Provider API adapter."""

from __future__ import annotations

from .client import HttpProviderApi
from .schema import BatchCreateResponse, ModelPayload, PlatformPayload

__all__ = [
    "BatchCreateResponse",
    "HttpProviderApi",
    "ModelPayload",
    "PlatformPayload",
]
