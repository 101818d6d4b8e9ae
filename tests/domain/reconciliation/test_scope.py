from __future__ import annotations

from provisync.domain.model import KeyDraft, ReconcileScope
from provisync.domain.reconciliation import compute_keys_in_scope
from tests.support.drafts import persisted_key


def test_empty_filter_selects_every_key() -> None:
    keys = [persisted_key(1), KeyDraft.new("sk-fresh-key-value")]

    for key_filter in (None, ""):
        scope, refs = compute_keys_in_scope(key_filter, keys)
        assert scope is ReconcileScope.ALL
        assert [ref.token for ref in refs] == [key.token for key in keys]


def test_filter_matches_temp_or_server_identity() -> None:
    saved, fresh = persisted_key(1), KeyDraft.new("sk-fresh-key-value")

    assert compute_keys_in_scope("1", [saved, fresh]).key_refs == (saved.ref,)
    assert compute_keys_in_scope(fresh.token, [saved, fresh]).key_refs == (fresh.ref,)


def test_unknown_filter_selects_nothing() -> None:
    result = compute_keys_in_scope("404", [persisted_key(1)])

    assert result.scope is ReconcileScope.SINGLE
    assert result.key_refs == ()
