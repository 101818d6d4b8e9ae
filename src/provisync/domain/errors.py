"""Error taxonomy for provider synchronisation.

Every error carries an :class:`ErrorKind`; handlers match on ``kind`` rather
than on which optional fields happen to be set.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

from provisync.domain.model.enums import ErrorKind

if TYPE_CHECKING:
    from provisync.domain.creation import CreationResult

FETCH_KINDS = frozenset(
    {
        ErrorKind.FETCH_TIMEOUT,
        ErrorKind.FETCH_UNAUTHORIZED,
        ErrorKind.FETCH_ENDPOINT_NOT_FOUND,
        ErrorKind.FETCH_SERVER_ERROR,
        ErrorKind.FETCH_CLIENT_ERROR,
        ErrorKind.FETCH_FAILED,
    }
)

RAW_BODY_PREVIEW_CHARS = 200


class ProviderSyncError(RuntimeError):
    """Base class for failures raised by the engine and its adapters."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        status: int | None = None,
        body: str | None = None,
        timeout: bool = False,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.body = body
        self.timeout = timeout


class PlatformCreateFailed(ProviderSyncError):
    """Raised when the root platform could not be created; nothing else was attempted."""

    def __init__(self, message: str, *, result: CreationResult) -> None:
        super().__init__(message, kind=ErrorKind.PLATFORM_CREATE_FAILED)
        self.result = result


class ProviderApiError(ProviderSyncError):
    """Raised when a Provider API call fails."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: str | None = None,
        timeout: bool = False,
    ) -> None:
        super().__init__(
            message,
            kind=ErrorKind.API_REQUEST_FAILED,
            status=status,
            body=body,
            timeout=timeout,
        )

    @property
    def is_auth_error(self) -> bool:
        return self.status in {401, 403}


class FetchError(ProviderSyncError):
    """Raised when a vendor model catalog could not be listed."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        if kind not in FETCH_KINDS:
            raise ValueError(f"{kind} is not a fetch failure kind")
        super().__init__(
            message,
            kind=kind,
            status=status,
            body=body,
            timeout=kind is ErrorKind.FETCH_TIMEOUT,
        )

    @classmethod
    def from_status(cls, status: int, body: str | None = None) -> FetchError:
        """Classify a non-success HTTP status from a catalog endpoint."""

        if status == 401:
            kind = ErrorKind.FETCH_UNAUTHORIZED
        elif status == 404:
            kind = ErrorKind.FETCH_ENDPOINT_NOT_FOUND
        elif status >= 500:
            kind = ErrorKind.FETCH_SERVER_ERROR
        elif status >= 400:
            kind = ErrorKind.FETCH_CLIENT_ERROR
        else:
            kind = ErrorKind.FETCH_FAILED
        return cls(f"Model listing failed with HTTP {status}", kind=kind, status=status, body=body)

    @classmethod
    def timed_out(cls, detail: str | None = None) -> FetchError:
        message = "Model listing timed out"
        if detail:
            message = f"{message}: {detail}"
        return cls(message, kind=ErrorKind.FETCH_TIMEOUT)

    def body_detail(self) -> str | None:
        """Best-effort human detail from the response body.

        ``error.message`` from a JSON body wins; a body that is not JSON is
        returned raw (truncated); a JSON body without that field yields ``None``.
        """

        if not self.body:
            return None
        try:
            payload = json.loads(self.body)
        except ValueError:
            return _truncate(self.body)
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict):
                message = error.get("message")
                if isinstance(message, str) and message.strip():
                    return message
        return None


class DraftStateError(RuntimeError):
    """Raised when an operation is not valid for the draft's current state."""


class OperationInProgressError(RuntimeError):
    """Raised when a second async operation is started on a busy draft store."""


def _truncate(text: str, limit: int = RAW_BODY_PREVIEW_CHARS) -> str:
    stripped = text.strip()
    if len(stripped) <= limit:
        return stripped
    return stripped[:limit] + "..."


@dataclass(frozen=True, slots=True)
class ItemError:
    """One failure entry in a creation report; ``index`` is ``None`` for aggregated entries."""

    kind: ErrorKind
    message: str
    index: int | None = None
