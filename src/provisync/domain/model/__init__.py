"""Public domain model surface."""

from __future__ import annotations

from provisync.domain.model.draft import (
    UNPERSISTED_MODEL_ID,
    Draft,
    KeyDraft,
    ModelDraft,
    PlatformDraft,
    RateLimitSettings,
    mask_key,
    new_temp_id,
)
from provisync.domain.model.enums import ApiFormat, ErrorKind, FormMode, ReconcileScope
from provisync.domain.model.identity import KeyRef, identity, tokens

__all__ = [  # noqa: RUF022
    # identity
    "KeyRef",
    "identity",
    "tokens",
    # draft
    "Draft",
    "KeyDraft",
    "ModelDraft",
    "PlatformDraft",
    "RateLimitSettings",
    "UNPERSISTED_MODEL_ID",
    "mask_key",
    "new_temp_id",
    # enums
    "ApiFormat",
    "ErrorKind",
    "FormMode",
    "ReconcileScope",
]
