"""Key scoping for reconciliation passes."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from provisync.domain.model import ReconcileScope

if TYPE_CHECKING:
    from collections.abc import Sequence

    from provisync.domain.model import KeyDraft, KeyRef


class KeysInScope(NamedTuple):
    scope: ReconcileScope
    key_refs: tuple[KeyRef, ...]


def compute_keys_in_scope(
    key_filter: str | None,
    platform_keys: Sequence[KeyDraft],
) -> KeysInScope:
    """Resolve a key filter to the references a reconciliation pass links.

    An empty filter selects every key. Otherwise the key whose identity equals
    the filter is selected, or nothing when no key matches.
    """

    if not key_filter:
        return KeysInScope(ReconcileScope.ALL, tuple(key.ref for key in platform_keys))
    for key in platform_keys:
        if key.token == key_filter:
            return KeysInScope(ReconcileScope.SINGLE, (key.ref,))
    return KeysInScope(ReconcileScope.SINGLE, ())
