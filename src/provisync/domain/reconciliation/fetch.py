"""Fetch-and-reconcile flow for the live model list of one key.

A fetch either replaces the model list (nothing persisted yet), merges
silently (the key has no models yet), or produces a :class:`ModelDiff` that
the caller confirms or cancels. No draft mutation happens between producing
a diff and confirming it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from provisync.domain.errors import DraftStateError
from provisync.domain.model import ModelDraft, ReconcileScope

from .merge import MergeResult, merge_by_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from provisync.domain.model import Draft, KeyDraft, KeyRef
    from provisync.domain.ports import CatalogModel

log = getLogger(__name__)


class FetchOutcomeKind(StrEnum):
    REPLACED = "replaced"
    MERGED = "merged"
    PENDING_DIFF = "pending_diff"


@dataclass(frozen=True, slots=True)
class ModelDiff:
    """Existing models compared against a fresh listing, awaiting a decision."""

    scope: ReconcileScope
    key_token: str
    existing_subset: tuple[ModelDraft, ...]
    fetched: tuple[ModelDraft, ...]

    @property
    def added(self) -> tuple[ModelDraft, ...]:
        known = {model.dedup_key for model in self.existing_subset}
        return tuple(model for model in self.fetched if model.dedup_key not in known)

    @property
    def missing(self) -> tuple[ModelDraft, ...]:
        listed = {model.dedup_key for model in self.fetched}
        return tuple(model for model in self.existing_subset if model.dedup_key not in listed)

    @property
    def unchanged(self) -> tuple[ModelDraft, ...]:
        listed = {model.dedup_key for model in self.fetched}
        return tuple(model for model in self.existing_subset if model.dedup_key in listed)

    def accept_all(self) -> tuple[list[ModelDraft], list[ModelDraft]]:
        """Selection that mirrors the listing: keep listed models, add new ones, drop the rest."""

        return [*self.unchanged, *self.added], list(self.missing)


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    kind: FetchOutcomeKind
    fetched_count: int
    merge: MergeResult | None = None
    diff: ModelDiff | None = None


@dataclass(frozen=True, slots=True)
class SingleKeyConfirmation:
    new_count: int
    folded_count: int
    deleted_ids: tuple[int, ...]
    # Removed models still linked to other keys; left on the server untouched.
    retained: tuple[ModelDraft, ...]


def build_fetched_models(fetched: Iterable[CatalogModel], key: KeyDraft) -> list[ModelDraft]:
    """Turn a catalog listing into client-only models linked to ``key``."""

    models: list[ModelDraft] = []
    seen: set[str] = set()
    for entry in fetched:
        name = entry.name.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        models.append(
            ModelDraft(name=name, alias=entry.alias, associations=[key.ref], dirty=True)
        )
    return models


def reconcile_fetched(
    draft: Draft,
    key: KeyDraft,
    fetched: Sequence[CatalogModel],
    scope: ReconcileScope = ReconcileScope.SINGLE,
) -> FetchOutcome:
    """Apply a fresh listing for ``key`` to ``draft`` or return a pending diff."""

    models = build_fetched_models(fetched, key)
    if not draft.has_persisted_models:
        draft.models = models
        log.info("Replaced draft models with %d fetched model(s)", len(models))
        return FetchOutcome(FetchOutcomeKind.REPLACED, len(models))

    token = key.token
    if scope is ReconcileScope.ALL:
        diff = ModelDiff(ReconcileScope.ALL, token, tuple(draft.models), tuple(models))
        return FetchOutcome(FetchOutcomeKind.PENDING_DIFF, len(models), diff=diff)

    subset = draft.models_for_key(token)
    if subset:
        diff = ModelDiff(ReconcileScope.SINGLE, token, tuple(subset), tuple(models))
        return FetchOutcome(FetchOutcomeKind.PENDING_DIFF, len(models), diff=diff)

    by_name = {model.name: model for model in models}

    def make_model(name: str) -> ModelDraft:
        return by_name.get(name) or ModelDraft(name=name)

    result = merge_by_name(draft.models, list(by_name), [key.ref], make_model)
    result.commit(draft)
    log.info(
        "Merged fetched models for key %s: %d added, %d linked",
        key.masked_value,
        result.added_count,
        result.merged_count,
    )
    return FetchOutcome(FetchOutcomeKind.MERGED, len(models), merge=result)


def confirm_single_key(
    draft: Draft,
    diff: ModelDiff,
    selected: Sequence[ModelDraft],
    removed: Sequence[ModelDraft],
) -> SingleKeyConfirmation:
    """Replace the scoped key's models with ``selected`` and queue deletions.

    Models without an association to the scoped key are kept as they are,
    except that a selected model sharing a name with one of them is folded
    into it and the scoped key is linked there.
    """

    if diff.scope is not ReconcileScope.SINGLE:
        raise DraftStateError("confirm_single_key requires a single-key diff")
    key = draft.key_for(diff.key_token)
    if key is None:
        raise DraftStateError(f"key {diff.key_token} is no longer part of the draft")
    token = key.token
    ref: KeyRef = key.ref

    other_key_models = [model for model in draft.models if not model.is_associated_with(token)]
    index = {model.dedup_key: model for model in other_key_models}
    models = list(other_key_models)
    folded = 0
    for model in selected:
        target = index.get(model.dedup_key)
        if target is not None:
            if target is not model:
                folded += 1
            target.link(ref)
            continue
        model.link(ref)
        index[model.dedup_key] = model
        models.append(model)
    draft.models = models

    deleted: list[int] = []
    retained: list[ModelDraft] = []
    for model in removed:
        if not model.is_persisted:
            continue
        if model.has_association_other_than(token):
            retained.append(model)
            log.warning(
                "Model %r (id=%d) still linked to other keys; link to key %s was not removed",
                model.name,
                model.id,
                key.masked_value,
            )
            continue
        if draft.record_deleted_model(model.id):
            deleted.append(model.id)

    new_count = sum(1 for model in selected if not model.is_persisted)
    return SingleKeyConfirmation(
        new_count=new_count,
        folded_count=folded,
        deleted_ids=tuple(deleted),
        retained=tuple(retained),
    )
