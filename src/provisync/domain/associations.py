"""Mutations of the model/key association graph inside a draft."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from provisync.domain import messages
from provisync.domain.model import ModelDraft
from provisync.domain.ports.notices import LoggingNotifier, NoticeLevel
from provisync.domain.reconciliation.scope import compute_keys_in_scope

if TYPE_CHECKING:
    from provisync.domain.model import Draft, KeyRef
    from provisync.domain.ports import Notifier

log = getLogger(__name__)


def attach(model: ModelDraft, ref: KeyRef) -> bool:
    """Link ``ref`` to ``model``; a no-op when its identity is already linked."""

    return model.link(ref)


def remove_model(draft: Draft, model_index: int) -> ModelDraft:
    """Drop the model at ``model_index``, remembering its id for deletion if persisted."""

    model = draft.models.pop(model_index)
    if model.is_persisted:
        draft.record_deleted_model(model.id)
    return model


def detach(
    draft: Draft,
    model_index: int,
    token: str | None = None,
    notifier: Notifier | None = None,
) -> bool:
    """Detach one key from a model, or remove the model outright.

    With ``token=None`` the model is removed unconditionally. Otherwise every
    association with that identity is dropped; a model left without any
    association is removed as well. A model that had no association to begin
    with is left untouched. Returns whether the model left the draft.
    """

    if token is None:
        remove_model(draft, model_index)
        return True

    model = draft.models[model_index]
    if not model.associations:
        return False
    model.unlink(token)
    if model.associations:
        return False

    remove_model(draft, model_index)
    (notifier or LoggingNotifier()).notify(
        messages.model_removed_without_keys(model.name), level=NoticeLevel.INFO
    )
    log.debug("Cascade-removed model %r after detaching key %s", model.name, token)
    return True


def remove_key(
    draft: Draft,
    key_index: int,
    notifier: Notifier | None = None,
) -> list[ModelDraft]:
    """Remove a key and strip it from every model; returns the cascaded models."""

    key = draft.keys[key_index]
    token = key.token
    cascaded: list[ModelDraft] = []
    kept: list[ModelDraft] = []
    for model in draft.models:
        if model.is_associated_with(token):
            model.unlink(token)
            if not model.associations:
                cascaded.append(model)
                if model.is_persisted:
                    draft.record_deleted_model(model.id)
                continue
        kept.append(model)
    draft.models = kept

    if cascaded:
        (notifier or LoggingNotifier()).notify(
            messages.models_removed_with_key(len(cascaded)), level=NoticeLevel.INFO
        )
    if key.is_persisted and key.id is not None:
        draft.record_deleted_key(key.id)
    del draft.keys[key_index]
    log.info("Removed key %s (%d cascaded model(s))", key.masked_value, len(cascaded))
    return cascaded


def add_model_row(draft: Draft, key_filter: str | None = None) -> ModelDraft:
    """Append an empty client-only model linked to the keys in scope of ``key_filter``."""

    _, refs = compute_keys_in_scope(key_filter, draft.keys)
    model = ModelDraft(name="", associations=list(refs), dirty=True)
    draft.models.append(model)
    return model
