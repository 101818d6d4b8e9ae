"""Identity tokens for API keys.

A key is referenced by ``temp_id`` until the server assigns it an ``id``. The
token is whichever of the two is present, so associations recorded before a
key is persisted keep matching it afterwards as long as they are rewritten
through :meth:`Draft.promote_key`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable


class HasKeyIdentity(Protocol):
    @property
    def id(self) -> int | None: ...

    @property
    def temp_id(self) -> str | None: ...


def identity(key: HasKeyIdentity) -> str:
    """Return the identity token of ``key``: its temp id if set, else its server id."""

    if key.temp_id:
        return key.temp_id
    return str(key.id or 0)


@dataclass(frozen=True, slots=True)
class KeyRef:
    """Reference to a key from a model association."""

    id: int | None = None
    temp_id: str | None = None

    @classmethod
    def of(cls, key: HasKeyIdentity) -> KeyRef:
        return cls(id=key.id, temp_id=key.temp_id)

    @property
    def token(self) -> str:
        return identity(self)

    @property
    def is_persisted(self) -> bool:
        return not self.temp_id and self.id is not None and self.id > 0


def tokens(refs: Iterable[HasKeyIdentity]) -> set[str]:
    return {identity(ref) for ref in refs}
