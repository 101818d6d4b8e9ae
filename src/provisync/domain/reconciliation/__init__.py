"""Reconciliation of fetched or imported model names into a draft."""

from __future__ import annotations

from .fetch import (
    FetchOutcome,
    FetchOutcomeKind,
    ModelDiff,
    SingleKeyConfirmation,
    build_fetched_models,
    confirm_single_key,
    reconcile_fetched,
)
from .merge import MergeResult, ModelFactory, merge_by_name
from .scope import KeysInScope, compute_keys_in_scope

__all__ = [
    "FetchOutcome",
    "FetchOutcomeKind",
    "KeysInScope",
    "MergeResult",
    "ModelDiff",
    "ModelFactory",
    "SingleKeyConfirmation",
    "build_fetched_models",
    "compute_keys_in_scope",
    "confirm_single_key",
    "merge_by_name",
    "reconcile_fetched",
]
