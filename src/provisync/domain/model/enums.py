"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ApiFormat(StrEnum):
    OPENAI = "OpenAI"
    OLLAMA = "Ollama"
    AZURE_OPENAI = "Azure OpenAI"
    GEMINI = "Gemini"
    ANTHROPIC = "Anthropic"


class FormMode(StrEnum):
    """Whether a draft describes a provider that does not exist yet or an existing one."""

    ADD = "add"
    EDIT = "edit"


class ReconcileScope(StrEnum):
    ALL = "all"
    SINGLE = "single"


class ErrorKind(StrEnum):
    """Closed set of failure kinds surfaced by the engine and its adapters."""

    PLATFORM_CREATE_FAILED = "platform_create_failed"
    KEY_CREATE_FAILED = "key_create_failed"
    MODEL_BATCH_CREATE_FAILED = "model_batch_create_failed"
    NO_KEY_AVAILABLE = "no_key_available"

    FETCH_TIMEOUT = "fetch_timeout"
    FETCH_UNAUTHORIZED = "fetch_unauthorized"
    FETCH_ENDPOINT_NOT_FOUND = "fetch_endpoint_not_found"
    FETCH_SERVER_ERROR = "fetch_server_error"
    FETCH_CLIENT_ERROR = "fetch_client_error"
    FETCH_FAILED = "fetch_failed"

    API_REQUEST_FAILED = "api_request_failed"
