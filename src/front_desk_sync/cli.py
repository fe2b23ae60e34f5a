"""Command-line front end for the front-desk sync engine.

Subcommands:

    status    fetch once, print banner, booking list and outbox
    checkin   check a guest in (queued when offline)
    queue     list pending offline check-ins
    drain     make one attempt to sync the oldest queued check-in
    run       keep the engine running and reprint the list on every change
    config    write a starter config file

All progress messages go to stderr; stdout carries only the requested
output so ``--json`` can be piped.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path

from . import __version__
from .config import Config
from .config_loader import ensure_config
from .core.client import BookingApiClient
from .errors import ApiError, FrontDeskSyncError, NetworkError
from .lifespan import resolve_config, sync_engine
from .logger import setup_logging
from .sync.connectivity import ConnectivityMonitor
from .sync.engine import SyncEngine
from .sync.models import DrainOutcome, Scope
from .sync.outbox import OutboxQueue
from .sync.reporter import (
    format_banner,
    format_drain_result,
    format_queue,
    format_view,
    view_to_json,
)
from .sync.state import StateStore

logger = logging.getLogger(__name__)


def _scope(args: argparse.Namespace) -> Scope:
    return Scope(hotel_id=args.hotel, today=args.date or date.today().isoformat())


def _open_outbox(config: Config) -> OutboxQueue:
    """Outbox bound to the configured state directory, without a feed."""
    return OutboxQueue(
        StateStore(Path(config.state_dir)),
        BookingApiClient(config),
        ConnectivityMonitor(window=config.poll_interval),
    )


def _dashboard(engine: SyncEngine) -> str:
    view = engine.view()
    saved_at = None if engine.is_live else engine.cache.saved_at(engine.scope.hotel_id)
    return "\n".join(
        [
            format_banner(
                engine.scope,
                engine.is_offline,
                engine.is_live,
                len(engine.outbox),
                saved_at,
            ),
            "",
            format_view(view),
        ]
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


async def cmd_status(args: argparse.Namespace, config: Config) -> int:
    scope = _scope(args)
    async with sync_engine(scope, config=config, start=False) as engine:
        if args.json:
            print(
                json.dumps(
                    view_to_json(
                        scope,
                        engine.is_offline,
                        engine.is_live,
                        engine.view(),
                        engine.outbox.pending,
                    ),
                    indent=2,
                )
            )
            return 0

        print(_dashboard(engine))
        print()
        print(format_queue(engine.outbox.pending))

        if not engine.is_offline:
            try:
                hotel = await engine.monitor.call(
                    engine.client.get_hotel, scope.hotel_id
                )
            except FrontDeskSyncError as e:
                logger.debug("Could not fetch hotel %s: %s", scope.hotel_id, e)
            else:
                room_count = (hotel or {}).get("room_count")
                if isinstance(room_count, int):
                    free = engine.free_rooms(room_count)
                    print()
                    print(f"Free rooms ({len(free)}): {', '.join(map(str, free)) or '-'}")
    return 0


async def cmd_checkin(args: argparse.Namespace, config: Config) -> int:
    scope = _scope(args)
    async with sync_engine(scope, config=config, start=False) as engine:
        try:
            event = await engine.check_in(args.booking, args.room)
        except (ApiError, NetworkError) as e:
            print(f"Check-in failed: {e}", file=sys.stderr)
            return 1
        except FrontDeskSyncError as e:
            print(f"Invalid check-in: {e}", file=sys.stderr)
            return 2

    if event is None:
        print(f"Checked in booking {args.booking}.")
    else:
        print(
            f"Offline: check-in for booking {event.booking_id} "
            f"(room {event.room_number}) queued, {len(engine.outbox)} pending."
        )
    return 0


async def cmd_queue(args: argparse.Namespace, config: Config) -> int:
    outbox = _open_outbox(config)
    if args.json:
        print(
            json.dumps(
                [event.model_dump(mode="json") for event in outbox.pending],
                indent=2,
            )
        )
    else:
        print(format_queue(outbox.pending))
    return 0


async def cmd_drain(args: argparse.Namespace, config: Config) -> int:
    outbox = _open_outbox(config)
    result = await outbox.drain()
    print(format_drain_result(result))
    print(f"{len(outbox)} pending.")
    if result.outcome in (DrainOutcome.RETRY, DrainOutcome.NETWORK_ERROR):
        return 1
    return 0


async def cmd_run(args: argparse.Namespace, config: Config) -> int:
    scope = _scope(args)
    async with sync_engine(scope, config=config) as engine:
        print(_dashboard(engine), flush=True)
        engine.subscribe(lambda _view: print(f"\n{_dashboard(engine)}", flush=True))
        engine.monitor.subscribe(
            lambda offline: print(
                f"\n{format_banner(scope, offline, engine.is_live, len(engine.outbox))}",
                flush=True,
            )
        )
        await asyncio.Event().wait()
    return 0


_COMMANDS = {
    "status": cmd_status,
    "checkin": cmd_checkin,
    "queue": cmd_queue,
    "drain": cmd_drain,
    "run": cmd_run,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="front-desk-sync",
        description="Offline-resilient booking sync for the hotel front desk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show today's bookings for hotel 1 (live, or cached when offline)
  front-desk-sync status --hotel 1

  # Check a guest in; queued for later if the backend is unreachable
  front-desk-sync checkin --hotel 1 --booking 42 --room 7

  # Inspect and flush the offline queue
  front-desk-sync queue
  front-desk-sync drain

  # Keep running and redraw the list on every change
  front-desk-sync run --hotel 1 --log-file /var/log/front-desk-sync.log
        """,
    )
    parser.add_argument(
        "--url",
        help="Override booking API URL (takes precedence over FRONT_DESK_API_URL and config files)",
    )
    parser.add_argument(
        "--state-dir",
        help="Directory for the outbox and snapshots (default: .front_desk/state)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-file",
        help="Log file path (default for 'run': /tmp/front-desk-sync.log)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"front-desk-sync version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def _scoped(name: str, help_text: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--hotel", required=True, help="Hotel id")
        p.add_argument(
            "--date", help="Operational day, YYYY-MM-DD (default: today)"
        )
        return p

    status = _scoped("status", "Print banner, booking list and outbox")
    status.add_argument("--json", action="store_true", help="JSON output")

    checkin = _scoped("checkin", "Check a guest in")
    checkin.add_argument("--booking", required=True, help="Booking id")
    checkin.add_argument(
        "--room",
        type=int,
        help="Room number (required when the check-in has to be queued)",
    )

    queue = sub.add_parser("queue", help="List pending offline check-ins")
    queue.add_argument("--json", action="store_true", help="JSON output")

    sub.add_parser("drain", help="Sync the oldest queued check-in once")

    _scoped("run", "Run the sync loops until interrupted")

    config = sub.add_parser("config", help="Configuration helpers")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    init = config_sub.add_parser("init", help="Write a starter config file")
    init.add_argument("--path", help="Target file (default: .front_desk/config.yml)")

    return parser


def run(argv: list[str] | None = None) -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args(argv)

    if args.command == "config":
        setup_logging(debug=args.debug)
        path = ensure_config(Path(args.path) if args.path else None)
        print(path)
        sys.exit(0)

    config_overrides = {}
    if args.url:
        config_overrides["url"] = args.url
    if args.state_dir:
        config_overrides["state_dir"] = args.state_dir
    if args.insecure:
        config_overrides["insecure"] = True
    if args.debug:
        config_overrides["debug"] = True

    try:
        config, unified = resolve_config(config_overrides or None)
    except RuntimeError:
        # Error already printed to stderr by resolve_config
        sys.exit(1)

    setup_logging(
        mode="service" if args.command == "run" else "cli",
        debug=config.debug,
        log_file=args.log_file or unified.logging.file,
        level=unified.logging.level,
    )

    try:
        code = asyncio.run(_COMMANDS[args.command](args, config))
    except RuntimeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)
    sys.exit(code)


if __name__ == "__main__":
    run()
