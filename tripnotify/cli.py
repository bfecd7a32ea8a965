#!/usr/bin/env python3
"""
tripnotify: command-line access to a user's notifications.

Usage:
    tripnotify tail                 # follow the live stream until Ctrl+C
    tripnotify list --limit 10      # print the latest notifications
    tripnotify read-all             # acknowledge everything

The session token comes from --token or the TRIPNOTIFY_TOKEN environment
variable; the service URL from --api-url or API_URL.
"""

import argparse
import asyncio
import os
import sys

import httpx
import structlog

from tripnotify.client.api import NotificationsAPI
from tripnotify.client.auth import static_token
from tripnotify.client.formatting import badge_label, status_label, time_ago
from tripnotify.client.routing import resolve_target
from tripnotify.client.session import NotificationSession
from tripnotify.client.store import NotificationStore
from tripnotify.core.config import settings
from tripnotify.core.errors import NotificationsAPIError
from tripnotify.core.sentry import init_sentry
from tripnotify.schemas.notification import NotificationItem

logger = structlog.get_logger()


def format_line(item: NotificationItem, viewer_id: str | None = None) -> str:
    marker = " " if item.is_read else "*"
    actor = item.actor_name or item.actor_id
    target = resolve_target(item, viewer_id)
    line = f"{marker} [{time_ago(item.created_at)}] {actor}: {item.message}"
    return f"{line}  -> {target}" if target else line


async def _tail(args: argparse.Namespace) -> int:
    session = NotificationSession(static_token(args.token), base_url=args.api_url)
    seen: set[str] = set()

    def _print_new(store: NotificationStore) -> None:
        for item in reversed(store.items):
            if item.id not in seen:
                seen.add(item.id)
                print(format_line(item, args.viewer))  # noqa: T201

    session.store.subscribe(_print_new)
    async with session:
        print(  # noqa: T201
            f"{status_label(session.is_streaming)} | unread: {badge_label(session.unread_count) or 0}",
            file=sys.stderr,
        )
        await asyncio.Event().wait()
    return 0


async def _list(args: argparse.Namespace) -> int:
    api = NotificationsAPI(args.api_url)
    try:
        items = await api.list_notifications(args.token, args.limit)
    finally:
        await api.aclose()
    for item in items:
        print(format_line(item, args.viewer))  # noqa: T201
    return 0


async def _read_all(args: argparse.Namespace) -> int:
    api = NotificationsAPI(args.api_url)
    try:
        await api.mark_all_read(args.token)
    finally:
        await api.aclose()
    print("All notifications marked as read.")  # noqa: T201
    return 0


COMMANDS = {
    "tail": _tail,
    "list": _list,
    "read-all": _read_all,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tripnotify", description="Trip notifications from the command line")
    parser.add_argument("--api-url", default=settings.API_URL, help="Notification service base URL")
    parser.add_argument("--token", default=os.getenv("TRIPNOTIFY_TOKEN"), help="Bearer session token")
    parser.add_argument("--viewer", default=None, help="Your user id (used for booking links)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("tail", help="Follow the live notification stream")
    list_parser = sub.add_parser("list", help="Print the latest notifications")
    list_parser.add_argument("--limit", type=int, default=settings.NOTIFICATIONS_INITIAL_LIMIT)
    sub.add_parser("read-all", help="Mark every notification as read")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.token:
        print("ERROR: a session token is required (--token or TRIPNOTIFY_TOKEN)", file=sys.stderr)  # noqa: T201
        return 2

    init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)
    try:
        return asyncio.run(COMMANDS[args.command](args))
    except KeyboardInterrupt:
        return 130
    except (NotificationsAPIError, httpx.HTTPError) as exc:
        logger.error("cli_command_failed", command=args.command, error=str(exc))
        print(f"ERROR: {exc}", file=sys.stderr)  # noqa: T201
        return 1


if __name__ == "__main__":
    sys.exit(main())
