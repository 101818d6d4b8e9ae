"""Mutable draft of a provider: one platform, its keys and its models.

Every mutator sets ``dirty`` on the entity it touches in the same call; plain
attribute assignment is reserved for hydration from server state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

from .enums import ApiFormat
from .identity import KeyRef, identity

if TYPE_CHECKING:
    from collections.abc import Mapping

UNPERSISTED_MODEL_ID = -1


def new_temp_id() -> str:
    return str(uuid4())


def mask_key(value: str) -> str:
    """Shorten a secret for display and logs."""

    if not value or len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"


@dataclass(frozen=True, slots=True)
class RateLimitSettings:
    rpm: int = 0
    tpm: int = 0


@dataclass(eq=False, kw_only=True)
class PlatformDraft:
    name: str = ""
    api_format: ApiFormat = ApiFormat.OPENAI
    base_url: str = ""
    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
    custom_headers: dict[str, str] = field(default_factory=dict[str, str])
    dirty: bool = False

    def update(
        self,
        *,
        name: str | None = None,
        api_format: ApiFormat | None = None,
        base_url: str | None = None,
        rate_limit: RateLimitSettings | None = None,
        custom_headers: Mapping[str, str] | None = None,
    ) -> None:
        if name is not None:
            self.name = name
        if api_format is not None:
            self.api_format = api_format
        if base_url is not None:
            self.base_url = base_url
        if rate_limit is not None:
            self.rate_limit = rate_limit
        if custom_headers is not None:
            self.custom_headers = dict(custom_headers)
        self.dirty = True


@dataclass(eq=False, kw_only=True)
class KeyDraft:
    """An API key; persisted once ``id`` is a positive server id."""

    value: str
    id: int | None = None
    temp_id: str | None = None
    dirty: bool = False

    def __post_init__(self) -> None:
        if self.temp_id and self.id is not None and self.id > 0:
            raise ValueError("key cannot carry both a server id and a temp id")

    @classmethod
    def new(cls, value: str) -> KeyDraft:
        return cls(value=value, temp_id=new_temp_id(), dirty=True)

    @property
    def is_persisted(self) -> bool:
        return self.id is not None and self.id > 0

    @property
    def token(self) -> str:
        return identity(self)

    @property
    def ref(self) -> KeyRef:
        return KeyRef.of(self)

    @property
    def masked_value(self) -> str:
        return mask_key(self.value)

    def set_value(self, value: str) -> None:
        self.value = value
        self.dirty = True


@dataclass(eq=False, kw_only=True)
class ModelDraft:
    """A model; ``id == -1`` until the server has stored it."""

    name: str
    alias: str = ""
    id: int = UNPERSISTED_MODEL_ID
    associations: list[KeyRef] = field(default_factory=list[KeyRef])
    dirty: bool = False

    @property
    def is_persisted(self) -> bool:
        return self.id > 0

    @property
    def dedup_key(self) -> str:
        return self.name.lower()

    @property
    def association_tokens(self) -> tuple[str, ...]:
        return tuple(ref.token for ref in self.associations)

    def is_associated_with(self, token: str) -> bool:
        return any(ref.token == token for ref in self.associations)

    def has_association_other_than(self, token: str) -> bool:
        return any(ref.token != token for ref in self.associations)

    def mark_dirty(self) -> None:
        self.dirty = True

    def rename(self, *, name: str | None = None, alias: str | None = None) -> None:
        if name is not None:
            self.name = name
        if alias is not None:
            self.alias = alias
        self.dirty = True

    def link(self, ref: KeyRef) -> bool:
        """Associate ``ref`` unless its identity is already linked."""

        if self.is_associated_with(ref.token):
            return False
        self.associations.append(ref)
        self.dirty = True
        return True

    def unlink(self, token: str) -> int:
        """Drop every association with identity ``token``; return how many were dropped."""

        kept = [ref for ref in self.associations if ref.token != token]
        removed = len(self.associations) - len(kept)
        self.associations = kept
        self.dirty = True
        return removed

    def replace_association(self, old_token: str, ref: KeyRef) -> bool:
        replaced = False
        for index, existing in enumerate(self.associations):
            if existing.token == old_token:
                self.associations[index] = ref
                replaced = True
        return replaced


@dataclass(eq=False, kw_only=True)
class Draft:
    """Aggregate root for one add/edit session."""

    platform: PlatformDraft = field(default_factory=PlatformDraft)
    keys: list[KeyDraft] = field(default_factory=list[KeyDraft])
    models: list[ModelDraft] = field(default_factory=list[ModelDraft])
    # Ordered, each id at most once.
    deleted_model_ids: list[int] = field(default_factory=list[int])
    deleted_key_ids: list[int] = field(default_factory=list[int])

    @property
    def has_persisted_models(self) -> bool:
        return any(model.is_persisted for model in self.models)

    @property
    def is_dirty(self) -> bool:
        return (
            self.platform.dirty
            or any(key.dirty for key in self.keys)
            or any(model.dirty for model in self.models)
            or bool(self.deleted_model_ids)
            or bool(self.deleted_key_ids)
        )

    def key_for(self, token: str) -> KeyDraft | None:
        for key in self.keys:
            if key.token == token:
                return key
        return None

    def models_for_key(self, token: str) -> list[ModelDraft]:
        return [model for model in self.models if model.is_associated_with(token)]

    def index_of_model(self, model: ModelDraft) -> int:
        for index, candidate in enumerate(self.models):
            if candidate is model:
                return index
        raise ValueError(f"model {model.name!r} is not part of this draft")

    def add_key(self, value: str) -> KeyDraft:
        key = KeyDraft.new(value)
        self.keys.append(key)
        return key

    def record_deleted_model(self, model_id: int) -> bool:
        if model_id <= 0 or model_id in self.deleted_model_ids:
            return False
        self.deleted_model_ids.append(model_id)
        return True

    def record_deleted_key(self, key_id: int) -> bool:
        if key_id <= 0 or key_id in self.deleted_key_ids:
            return False
        self.deleted_key_ids.append(key_id)
        return True

    def promote_key(self, key: KeyDraft, new_id: int) -> None:
        """Give ``key`` its server id and rewrite associations that used its temp id."""

        if new_id <= 0:
            raise ValueError(f"server ids are positive, got {new_id}")
        old_token = key.token
        key.id = new_id
        key.temp_id = None
        key.dirty = False
        new_ref = key.ref
        for model in self.models:
            model.replace_association(old_token, new_ref)
