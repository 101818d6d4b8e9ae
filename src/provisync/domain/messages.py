"""User-facing text for errors, notices and creation reports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from provisync.domain.errors import FetchError, ProviderSyncError
from provisync.domain.model import ErrorKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from provisync.domain.creation import CreationResult


def _client_error(error: ProviderSyncError) -> str:
    detail = error.body_detail() if isinstance(error, FetchError) else None
    detail = detail or "check the API key and the base URL"
    return f"Fetching models failed ({error.status}): {detail}"


_DESCRIBERS: dict[ErrorKind, Callable[[ProviderSyncError], str]] = {
    ErrorKind.PLATFORM_CREATE_FAILED: lambda error: f"Platform creation failed: {error}",
    ErrorKind.KEY_CREATE_FAILED: lambda error: f"Key creation failed: {error}",
    ErrorKind.MODEL_BATCH_CREATE_FAILED: lambda error: f"Batch model creation failed: {error}",
    ErrorKind.NO_KEY_AVAILABLE: lambda _: NO_KEY_AVAILABLE,
    ErrorKind.FETCH_TIMEOUT: lambda _: (
        "Fetching models failed: the request timed out, "
        "check the network and the provider settings"
    ),
    ErrorKind.FETCH_UNAUTHORIZED: lambda _: (
        "Fetching models failed: the API key is invalid or lacks permission"
    ),
    ErrorKind.FETCH_ENDPOINT_NOT_FOUND: lambda _: (
        "Fetching models failed: endpoint not found, check the base URL"
    ),
    ErrorKind.FETCH_SERVER_ERROR: lambda _: (
        "Fetching models failed: the provider returned a server error, try again later"
    ),
    ErrorKind.FETCH_CLIENT_ERROR: _client_error,
    ErrorKind.FETCH_FAILED: lambda error: f"Fetching models failed: {error}",
    ErrorKind.API_REQUEST_FAILED: lambda error: describe_api_error(error, "Request"),
}


def describe_error(error: ProviderSyncError) -> str:
    """Render any engine error as one line."""

    try:
        describe = _DESCRIBERS[error.kind]
    except KeyError as exc:
        raise RuntimeError(f"No message registered for {error.kind}") from exc
    return describe(error)


def describe_fetch_error(error: FetchError) -> str:
    return describe_error(error)


def describe_api_error(error: BaseException, operation: str) -> str:
    """Describe a Provider API failure for ``operation`` (e.g. ``"Update provider"``)."""

    if isinstance(error, ProviderSyncError):
        if error.timeout:
            return f"{operation} failed: the request timed out, check the network"
        if error.status in {401, 403}:
            return f"{operation} failed: unauthorized, check the API token"
        if error.status is not None and error.status >= 500:
            return f"{operation} failed: internal server error, try again later"
        if error.status is not None and error.status >= 400:
            return f"{operation} failed: the request was rejected, check the input"
    message = str(error)
    if message:
        return f"{operation} failed: {message}"
    return f"{operation} failed: unknown error"


NO_KEY_AVAILABLE = "No key available, model creation skipped"


def key_create_failed(index: int, reason: str) -> str:
    return f"Key {index + 1} failed: {reason}"


def model_batch_failed(reason: str) -> str:
    return f"Batch model creation failed: {reason}"


def model_removed_without_keys(name: str) -> str:
    return f'Model "{name or "unnamed"}" removed: no remaining key association'


def models_removed_with_key(count: int) -> str:
    return f"Removed {count} model(s) left without a key association"


def merge_outcome(merged_count: int, added_count: int, *, action: str) -> str:
    """Summarise a merge; ``action`` is ``"Imported"`` or ``"Fetched"``."""

    if merged_count and added_count:
        return (
            f"{action} {added_count} new model(s) and linked keys to "
            f"{merged_count} existing model(s)"
        )
    if merged_count:
        return f"Linked keys to {merged_count} existing model(s)"
    if added_count:
        return f"{action} {added_count} new model(s)"
    return "All models already exist and are linked to the selected keys"


def models_replaced(count: int) -> str:
    return f"Fetched {count} model(s)"


def single_key_confirmed(new_count: int) -> str:
    return f"Model changes applied, {new_count} new model(s) for this key"


def global_confirmed(added_count: int, removed_count: int) -> str:
    return f"Model changes applied: {added_count} added, {removed_count} removed"


def link_not_stripped(name: str) -> str:
    return f'Model "{name}" is still linked to other keys; its link to this key was kept'


def describe_creation(result: CreationResult) -> str:
    """Full or partial success message for a creation report."""

    keys = result.api_keys
    models = result.models
    if not result.success:
        return f"Platform creation failed: {result.platform.error or 'unknown error'}"
    if keys.failed == 0 and models.failed == 0:
        return "Provider created"
    warnings: list[str] = []
    if keys.failed:
        warnings.append(f"{keys.failed}/{keys.total} keys failed")
    if models.failed:
        warnings.append(f"{models.failed}/{models.total} models failed")
    return (
        "Platform created, but: "
        + "; ".join(warnings)
        + ". You can continue in edit mode."
    )


PROVIDER_UPDATED = "Provider updated"
