"""Command line access to Microsoft Graph mail and calendar operations."""

import argparse
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from mail_clients.core.graph import (
    GraphClient,
    create_event,
    get_calendar_view,
    get_current_user,
    get_graph_client,
    list_all_messages,
    reset_graph_clients,
)
from mail_clients.ui.components import StatusMessage
from mail_clients.ui.graph_view import EventTable, MessageTable, display_user
from mail_clients.utils.config import load_settings
from mail_clients.utils.console import get_console
from mail_clients.utils.errors import (
    ConfigurationError,
    ErrorHandler,
    MailClientError,
    format_error_message,
)
from mail_clients.utils.logging import get_logger, init_logging

logger = get_logger(__name__)


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"'{value}' is not an ISO date/time, e.g. 2024-05-01T09:30"
        ) from None


def setup_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mail-graph",
        description="Microsoft Graph mail and calendar commands",
    )
    parser.add_argument(
        "--token", help="OAuth access token (defaults to GRAPH_ACCESS_TOKEN)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    commands_config = [
        ("user", "Show the signed-in user", []),
        ("messages", "List every message (sender and subject)", []),
        ("calendar", "Show calendar events in a time window", [
            ("--start", {"type": _parse_datetime, "required": True, "help": "Window start, ISO format"}),
            ("--end", {"type": _parse_datetime, "required": True, "help": "Window end, ISO format"}),
            ("--timezone", {"default": "UTC", "help": "Time zone for event times (default: UTC)"}),
        ]),
        ("create-event", "Create a calendar event", [
            ("--subject", {"required": True, "help": "Event subject"}),
            ("--start", {"type": _parse_datetime, "required": True, "help": "Start, wall-clock time in --timezone"}),
            ("--end", {"type": _parse_datetime, "required": True, "help": "End, wall-clock time in --timezone"}),
            ("--timezone", {"default": "UTC", "help": "Time zone of --start and --end (default: UTC)"}),
            ("--attendee", {"action": "append", "dest": "attendees", "help": "Required attendee address, repeatable"}),
            ("--body", {"help": "Plain-text event body"}),
        ]),
    ]

    for command_name, command_help, arguments in commands_config:
        subparser = subparsers.add_parser(command_name, help=command_help)
        for arg_name, arg_config in arguments:
            subparser.add_argument(arg_name, **arg_config)

    return parser


def run_command(
    args: argparse.Namespace, token: str, client: GraphClient, console: Console
) -> None:
    """Dispatch a parsed command. Graph faults propagate to the caller."""
    if args.command == "user":
        display_user(get_current_user(token, client=client), console)

    elif args.command == "messages":
        MessageTable(console).display(list_all_messages(token, client=client))

    elif args.command == "calendar":
        events = get_calendar_view(
            token, args.start, args.end, args.timezone, client=client
        )
        EventTable(console).display(events, title=f"Calendar ({args.timezone})")

    elif args.command == "create-event":
        create_event(
            token,
            args.timezone,
            args.subject,
            args.start,
            args.end,
            attendees=args.attendees,
            body=args.body,
            client=client,
        )
        StatusMessage(console).success(f"Event '{escape(args.subject)}' created")


def main(argv: Optional[List[str]] = None) -> int:
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    console = get_console()
    status = StatusMessage(console)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        status.error(f"Configuration error: {escape(e.message)}")
        return 1

    init_logging(settings.log_level)

    token = args.token or settings.graph_access_token
    if not token:
        status.error("No access token - pass --token or set GRAPH_ACCESS_TOKEN")
        return 1

    client = get_graph_client(
        token, base_url=settings.graph_base_url, timeout=settings.network_timeout
    )

    try:
        run_command(args, token, client, console)

    except (MailClientError, ValueError) as e:
        ErrorHandler.handle(e, f"mail-graph {args.command}")
        status.error(escape(format_error_message(e)))
        return 1

    finally:
        reset_graph_clients()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
