"""CLI entry point for ghrest.

Handles argument parsing and dispatches to invoke or auth mode.
"""

from __future__ import annotations

import argparse
import getpass
import json
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ghrest.errors import GitHubRestError
from ghrest.models import DEFAULT_ACCEPT


@dataclass
class InvokeArgs:
    """Parsed arguments for invoke command."""

    target: str
    method: str
    body: str | None
    in_file: Path | None
    content_type: str | None
    accept: str
    headers: dict[str, str] = field(default_factory=dict)
    all_pages: bool = False
    single_page: bool = False
    save: bool = False
    extended: bool = False
    token: str | None = None
    config: Path | None = None


@dataclass
class AuthArgs:
    """Parsed arguments for auth command."""

    action: str
    session_only: bool = False
    config: Path | None = None


def parse_header(value: str) -> tuple[str, str]:
    """Parse a 'Name: value' header argument.

    Raises:
        argparse.ArgumentTypeError: If the value has no colon or an empty name.
    """
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Invalid header '{value}', expected 'Name: value'")
    return name.strip(), header_value.strip()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ghrest",
        description="Call the GitHub REST API with pagination, 202 retries and readable errors.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    invoke = subparsers.add_parser("invoke", help="Execute one REST call and print the result as JSON")
    invoke.add_argument("target", help="Path relative to the API root (repos/o/r) or an absolute URL")
    invoke.add_argument("--method", "-X", default="GET", help="HTTP method (default: GET)")
    body_group = invoke.add_mutually_exclusive_group()
    body_group.add_argument("--body", help="Raw request body (JSON text)")
    body_group.add_argument("--in-file", type=Path, help="File to upload as the request body (POST only)")
    invoke.add_argument("--content-type", help="Explicit Content-Type")
    invoke.add_argument(
        "--accept",
        default=DEFAULT_ACCEPT,
        help=f"Accept header, comma-join to opt into previews (default: {DEFAULT_ACCEPT})",
    )
    invoke.add_argument(
        "--header",
        "-H",
        type=parse_header,
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Additional request header (repeatable)",
    )
    pages = invoke.add_mutually_exclusive_group()
    pages.add_argument("--all-pages", action="store_true", help="Follow Link headers and print every result")
    pages.add_argument("--single-page", action="store_true", help="Paginated fetch that stops after the first page")
    invoke.add_argument("--save", action="store_true", help="Write the body to a temporary file and print its path")
    invoke.add_argument("--extended", action="store_true", help="Print status and headers along with the body")
    invoke.add_argument("--token", help="Access token for this call only")
    invoke.add_argument("--config", type=Path, help="Path to config YAML")

    auth = subparsers.add_parser("auth", help="Manage the stored access token")
    auth.add_argument("action", choices=["set", "clear", "status"])
    auth.add_argument(
        "--session-only",
        action="store_true",
        help="Only change this process's cached token, not the stored token file",
    )
    auth.add_argument("--config", type=Path, help="Path to config YAML")

    return parser


def parse_args(args: list[str] | None = None) -> InvokeArgs | AuthArgs:
    namespace = build_parser().parse_args(args)
    if namespace.command == "invoke":
        return InvokeArgs(
            target=namespace.target,
            method=namespace.method,
            body=namespace.body,
            in_file=namespace.in_file,
            content_type=namespace.content_type,
            accept=namespace.accept,
            headers=dict(namespace.header),
            all_pages=namespace.all_pages,
            single_page=namespace.single_page,
            save=namespace.save,
            extended=namespace.extended,
            token=namespace.token,
            config=namespace.config,
        )
    return AuthArgs(
        action=namespace.action,
        session_only=namespace.session_only,
        config=namespace.config,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        parsed = parse_args(argv)

        if isinstance(parsed, InvokeArgs):
            return run_invoke(parsed)
        return run_auth(parsed)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, default=_json_default, ensure_ascii=False))


def _load(config_path: Path | None):
    from ghrest.client import GitHubRestClient
    from ghrest.config_loader import load_client_config
    from ghrest.logging_setup import setup_logging

    config = load_client_config(config_path)
    setup_logging(config.log_level, config.log_path)
    return GitHubRestClient(config)


def run_invoke(args: InvokeArgs) -> int:
    """Run invoke mode."""
    from ghrest.models import RequestDescriptor

    try:
        client = _load(args.config)
    except GitHubRestError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    try:
        with client:
            descriptor = RequestDescriptor(
                method=args.method,
                target=args.target,
                accept=args.accept,
                body=args.body,
                in_file=args.in_file,
                content_type=args.content_type,
                additional_headers=args.headers,
                extended_result=args.extended,
                save=args.save,
                single_page=args.single_page,
            )
            if args.all_pages or args.single_page:
                _print_json(client.invoke_multiple(descriptor, args.token))
            elif args.extended:
                envelope = client.invoke(descriptor, args.token)
                _print_json(envelope.model_dump(mode="python"))
            else:
                _print_json(client.invoke(descriptor, args.token))
    except GitHubRestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def run_auth(args: AuthArgs) -> int:
    """Run auth mode."""
    try:
        client = _load(args.config)
    except GitHubRestError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    with client:
        auth = client.auth
        if args.action == "status":
            print("Access token: " + ("configured" if auth.has_token() else "not configured"))
            return 0

        if args.action == "clear":
            auth.clear_token(session_only=args.session_only)
            print("Access token cleared")
            return 0

        if sys.stdin.isatty():
            token = getpass.getpass("GitHub access token: ")
        else:
            token = sys.stdin.readline()
        try:
            auth.set_token(token, session_only=args.session_only)
        except GitHubRestError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except OSError as e:
            print(f"Error storing token: {e}", file=sys.stderr)
            return 1
        print("Access token stored")
        return 0


if __name__ == "__main__":
    sys.exit(main())
