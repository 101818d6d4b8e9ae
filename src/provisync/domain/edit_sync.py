"""Push the dirty parts of an edit-mode draft to the Provider API."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from provisync.domain.ports import ModelCreate, PlatformFields

if TYPE_CHECKING:
    from provisync.domain.model import Draft, ModelDraft
    from provisync.domain.ports import ProviderApi

log = getLogger(__name__)


@dataclass(slots=True)
class EditSyncReport:
    platform_updated: bool = False
    keys_created: int = 0
    keys_updated: int = 0
    keys_deleted: int = 0
    models_created: int = 0
    models_updated: int = 0
    models_deleted: int = 0
    skipped_models: list[str] = field(default_factory=list[str])

    @property
    def change_count(self) -> int:
        return (
            int(self.platform_updated)
            + self.keys_created
            + self.keys_updated
            + self.keys_deleted
            + self.models_created
            + self.models_updated
            + self.models_deleted
        )


def persisted_key_ids(model: ModelDraft) -> tuple[int, ...]:
    return tuple(ref.id for ref in model.associations if ref.is_persisted and ref.id is not None)


async def submit_edit(api: ProviderApi, draft: Draft, platform_id: int) -> EditSyncReport:
    """Send only what changed, in dependency order.

    Keys are created before models so that new models can link to them;
    :meth:`Draft.promote_key` rewrites associations as each key gets its id.
    The first failing call propagates; calls already made are not undone and
    are not repeated by a later submit of the same draft.
    """

    report = EditSyncReport()

    if draft.platform.dirty:
        await api.update_platform(platform_id, PlatformFields.from_draft(draft.platform))
        draft.platform.dirty = False
        report.platform_updated = True

    for key_id in list(draft.deleted_key_ids):
        await api.delete_key(platform_id, key_id)
        draft.deleted_key_ids.remove(key_id)
        report.keys_deleted += 1

    for key in list(draft.keys):
        if not key.is_persisted:
            record = await api.create_key(platform_id, key.value)
            draft.promote_key(key, record.id)
            report.keys_created += 1
        elif key.dirty and key.id is not None:
            await api.update_key(platform_id, key.id, key.value)
            key.dirty = False
            report.keys_updated += 1

    for model_id in list(draft.deleted_model_ids):
        await api.delete_model(platform_id, model_id)
        draft.deleted_model_ids.remove(model_id)
        report.models_deleted += 1

    new_models: list[ModelCreate] = []
    for model in draft.models:
        if model.is_persisted:
            if not model.dirty:
                continue
            await api.update_model(
                platform_id,
                model.id,
                ModelCreate(name=model.name, alias=model.alias, key_ids=persisted_key_ids(model)),
            )
            model.dirty = False
            report.models_updated += 1
            continue
        if not model.name.strip():
            report.skipped_models.append(model.name)
            log.warning("Skipping unnamed model row")
            continue
        new_models.append(
            ModelCreate(name=model.name, alias=model.alias, key_ids=persisted_key_ids(model))
        )

    if new_models:
        batch = await api.create_models_batch(platform_id, new_models)
        report.models_created = batch.created_count
        if batch.created_count < batch.total_count:
            log.warning(
                "Server created %d of %d new model(s)", batch.created_count, batch.total_count
            )

    log.info("Synced platform %d: %d change(s)", platform_id, report.change_count)
    return report
