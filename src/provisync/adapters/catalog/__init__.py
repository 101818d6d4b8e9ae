"""Public interface for the vendor model-catalog adapter."""

from __future__ import annotations

from .client import HttpModelCatalog, ListingRequest, build_listing_request, parse_listing
from .schema import OllamaTagList, OpenAIModelList

__all__ = [
    "HttpModelCatalog",
    "ListingRequest",
    "OllamaTagList",
    "OpenAIModelList",
    "build_listing_request",
    "parse_listing",
]
