# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from provisync.app import (
    create_provider_from_file,
    list_catalog_models,
    ping_provider_api,
    sync_key_models,
)
from provisync.config import configure_logging
from provisync.domain import messages
from provisync.domain.errors import ProviderSyncError
from provisync.domain.model import ApiFormat

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from provisync.domain.reconciliation import ModelDiff

log = logging.getLogger(__name__)


def _parse_api_format(value: str) -> ApiFormat:
    for api_format in ApiFormat:
        if value.lower() in {api_format.value.lower(), api_format.name.lower()}:
            return api_format
    choices = ", ".join(api_format.value for api_format in ApiFormat)
    raise ValueError(f"Unknown API format {value!r} (expected one of: {choices})")


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"Invalid header {value!r}, expected 'Name: value'")
    return name.strip(), header_value.strip()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage providers on a Provider API server")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a provider from a JSON definition")
    create.add_argument("file", type=str, help="Path to the provider definition")

    fetch = subparsers.add_parser("fetch-models", help="List the models a vendor offers to a key")
    fetch.add_argument("--format", dest="api_format", type=str, default=ApiFormat.OPENAI.value)
    fetch.add_argument("--base-url", type=str, required=True, help="Vendor base URL")
    fetch.add_argument("--key", type=str, required=True, help="API key value")
    fetch.add_argument(
        "--header",
        action="append",
        default=[],
        help="Extra request header as 'Name: value' (repeatable)",
    )

    sync = subparsers.add_parser(
        "sync-models", help="Refresh the models of one key of a saved provider"
    )
    sync.add_argument("platform_id", type=int, help="Platform id on the server")
    sync.add_argument(
        "--key",
        dest="key_number",
        type=int,
        required=True,
        help="1-based position of the key in the platform's key list",
    )
    sync.add_argument("--yes", action="store_true", help="Apply model changes without asking")

    subparsers.add_parser("ping", help="Check that the Provider API server answers")

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "fetch-models":
        args.api_format = _parse_api_format(args.api_format)
        args.headers = dict(_parse_header(header) for header in args.header)
    elif args.command == "sync-models" and args.key_number < 1:
        raise ValueError("--key must be 1 or greater")


def _prompt_diff(diff: ModelDiff) -> bool:
    added = [model.name for model in diff.added]
    missing = [model.name for model in diff.missing]
    print(f"New models ({len(added)}): {', '.join(added) or '-'}")
    print(f"Missing models ({len(missing)}): {', '.join(missing) or '-'}")
    answer = input("Apply these changes? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    if parsed_args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        if parsed_args.command == "create":
            result = create_provider_from_file(parsed_args.file)
            print(result.summary())
            for entry in (*result.api_keys.errors, *result.models.errors):
                print(f"  {entry.message}")
        elif parsed_args.command == "fetch-models":
            models = list_catalog_models(
                api_format=parsed_args.api_format,
                base_url=parsed_args.base_url,
                key_value=parsed_args.key,
                custom_headers=parsed_args.headers,
            )
            for model in models:
                print(f"{model.name}\t{model.alias}" if model.alias else model.name)
        elif parsed_args.command == "sync-models":
            sync_result = sync_key_models(
                parsed_args.platform_id,
                parsed_args.key_number - 1,
                confirm=None if parsed_args.yes else _prompt_diff,
            )
            if sync_result.cancelled:
                print("No changes applied")
            elif sync_result.report is not None:
                print(f"{sync_result.report.change_count} change(s) pushed")
        elif parsed_args.command == "ping":
            probe = ping_provider_api()
            if not probe.success:
                print(f"Provider API unreachable (status {probe.status})", file=sys.stderr)
                sys.exit(1)
            print(f"Provider API reachable (status {probe.status})")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ProviderSyncError as exc:
        print(messages.describe_error(exc), file=sys.stderr)
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
