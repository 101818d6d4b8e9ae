"""Domain port definitions for adapters."""

from __future__ import annotations

from .catalog import CatalogModel, ModelCatalog
from .notices import LoggingNotifier, NoticeLevel, Notifier
from .provider_api import (
    BatchCreateResult,
    KeyRecord,
    ModelChangeResult,
    ModelCreate,
    ModelRecord,
    PlatformFields,
    PlatformRecord,
    ProviderApi,
)

__all__ = [
    "BatchCreateResult",
    "CatalogModel",
    "KeyRecord",
    "LoggingNotifier",
    "ModelCatalog",
    "ModelChangeResult",
    "ModelCreate",
    "ModelRecord",
    "NoticeLevel",
    "Notifier",
    "PlatformFields",
    "PlatformRecord",
    "ProviderApi",
]
