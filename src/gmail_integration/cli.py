"""Command-line interface for the Gmail integration adapter.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from gmail_integration import __version__
from gmail_integration.config import get_settings
from gmail_integration.exceptions import IntegrationError
from gmail_integration.gateway import IntegrationGateway
from gmail_integration.models import Account
from gmail_integration.store import IntegrationStore
from gmail_integration.utils import configure_logging

logger = structlog.get_logger()


def _add_db_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite store (default: settings db_path)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gmail-integration", description="Gmail integration adapter")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind host (default: settings api_host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: settings api_port)")

    # Account commands
    account_parser = subparsers.add_parser("account", help="Manage stored accounts")
    account_sub = account_parser.add_subparsers(dest="account_command", required=True)

    add_parser = account_sub.add_parser("add", help="Register an authorized Gmail account")
    add_parser.add_argument("--id", required=True, help="Account identifier")
    add_parser.add_argument("--email", required=True, help="Mailbox address")
    add_parser.add_argument("--token", default=None, help="OAuth access token")
    add_parser.add_argument("--refresh-token", default=None, help="OAuth refresh token")
    _add_db_argument(add_parser)

    # Integration commands
    integration_parser = subparsers.add_parser("integration", help="Manage Gmail integrations")
    integration_sub = integration_parser.add_subparsers(dest="integration_command", required=True)

    create_parser = integration_sub.add_parser("create", help="Create and subscribe an integration")
    create_parser.add_argument("--account-id", required=True, help="Owning account id")
    create_parser.add_argument("--integration-id", required=True, help="Caller's integration id")
    create_parser.add_argument("--email", required=True, help="Mailbox address")
    _add_db_argument(create_parser)

    list_parser = integration_sub.add_parser("list", help="List integrations")
    list_parser.add_argument("--account-id", default=None, help="Only this account's integrations")
    _add_db_argument(list_parser)

    send_test_parser = subparsers.add_parser("send-test", help="Send the diagnostic test message")
    _add_db_argument(send_test_parser)

    return parser


def _open_store(db: Path | None) -> IntegrationStore:
    store = IntegrationStore(db or get_settings().db_path)
    store.initialize()
    return store


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "gmail_integration.api.app:create_app",
        factory=True,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _cmd_account_add(args: argparse.Namespace) -> int:
    store = _open_store(args.db)
    store.add_account(
        Account(id=args.id, uid=args.email, token=args.token, refresh_token=args.refresh_token)
    )
    print(f"Stored account {args.id} ({args.email})")
    return 0


async def _cmd_integration_create(args: argparse.Namespace) -> int:
    gateway = IntegrationGateway(_open_store(args.db), settings=get_settings())
    await gateway.create_integration(args.account_id, args.integration_id, args.email)

    latest = gateway.store.list_integrations(args.account_id)[-1]
    print(f"Integration {latest.id} for {latest.email}: {latest.subscription_status.value}")
    return 0


def _cmd_integration_list(args: argparse.Namespace) -> int:
    store = _open_store(args.db)
    for i in store.list_integrations(args.account_id):
        expires = i.expiration.isoformat() if i.expiration else "-"
        print(
            f"{i.id}\t{i.kind}\t{i.account_id}\t{i.email}\t"
            f"{i.subscription_status.value}\t{i.gmail_history_id or '-'}\t{expires}"
        )
    return 0


async def _cmd_send_test(args: argparse.Namespace) -> int:
    gateway = IntegrationGateway(_open_store(args.db), settings=get_settings())
    result = await gateway.send_test_email()
    if result.is_success:
        print(f"Sent message {result.message_id} (thread {result.thread_id})")
        return 0
    print(f"Send failed: {result.error}")
    return 1


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Gmail integration CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("gmail_integration_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    try:
        if parsed.command == "serve":
            return _cmd_serve(parsed)
        if parsed.command == "account" and parsed.account_command == "add":
            return _cmd_account_add(parsed)
        if parsed.command == "integration":
            if parsed.integration_command == "create":
                return asyncio.run(_cmd_integration_create(parsed))
            if parsed.integration_command == "list":
                return _cmd_integration_list(parsed)
        if parsed.command == "send-test":
            return asyncio.run(_cmd_send_test(parsed))
    except IntegrationError as exc:
        logger.error("command_failed", command=parsed.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
