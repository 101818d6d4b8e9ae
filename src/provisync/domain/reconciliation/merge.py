"""Case-insensitive merge of model names into an existing model list."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from provisync.domain.model import ModelDraft

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from provisync.domain.model import Draft, KeyRef

ModelFactory = Callable[[str], ModelDraft]


@dataclass(slots=True)
class MergeResult:
    merged_count: int = 0
    added_count: int = 0
    models_to_add: list[ModelDraft] = field(default_factory=list[ModelDraft])

    def commit(self, draft: Draft) -> None:
        draft.models.extend(self.models_to_add)


def merge_by_name(
    existing_models: Sequence[ModelDraft],
    new_names: Iterable[str],
    keys_to_add: Sequence[KeyRef],
    make_model: ModelFactory | None = None,
) -> MergeResult:
    """Link ``keys_to_add`` to models named in ``new_names``.

    Names are compared by :attr:`ModelDraft.dedup_key`. A known model gains the
    keys it lacks; ``merged_count`` counts each newly linked key. An unknown
    name yields a new client-only model holding every key in ``keys_to_add``;
    these are returned in ``models_to_add`` and are not added to the list.
    """

    index: dict[str, ModelDraft] = {}
    for model in existing_models:
        index[model.dedup_key] = model

    result = MergeResult()
    for name in new_names:
        if not name.strip():
            continue
        existing = index.get(name.lower())
        if existing is not None:
            for ref in keys_to_add:
                if existing.link(ref):
                    result.merged_count += 1
            continue

        model = make_model(name) if make_model is not None else ModelDraft(name=name)
        for ref in keys_to_add:
            model.link(ref)
        model.mark_dirty()
        index[model.dedup_key] = model
        result.models_to_add.append(model)
        result.added_count += 1
    return result
