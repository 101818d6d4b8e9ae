"""Port for listing the models a vendor exposes to one API key."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from provisync.domain.model import ApiFormat


@dataclass(frozen=True, slots=True)
class CatalogModel:
    name: str
    alias: str = ""


@runtime_checkable
class ModelCatalog(Protocol):
    """Lists models from a vendor endpoint.

    Implementations raise :class:`provisync.domain.errors.FetchError` with a
    classified ``kind`` on failure.
    """

    async def fetch_models_for_key(
        self,
        key_value: str,
        api_format: ApiFormat,
        base_url: str,
        custom_headers: Mapping[str, str] | None = None,
    ) -> list[CatalogModel]: ...


__all__ = ["CatalogModel", "ModelCatalog"]
