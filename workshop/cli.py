"""
Repair Desk — CLI

Usage:
    # Interactive operator menu (default)
    python -m workshop.cli
    python -m workshop.cli menu

    # Print every stage queue
    python -m workshop.cli queues

    # Print the service history, or one device's records
    python -m workshop.cli history [--device SN-1]

    # Copy the rendered history to a file
    python -m workshop.cli export-history history_export.txt

    # Check the snapshot and history files
    python -m workshop.cli verify

Global options (--config, --snapshot, --history, --log-level) go before
the command and override the YAML config.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from common.config import get_config_value, load_config
from common.logging import configure_logging
from workshop.console import OperatorConsole, render_queues
from workshop.errors import PersistenceError
from workshop.history import HistoryLog
from workshop.runtime import ServiceDesk
from workshop.store import SnapshotStore


def cmd_menu(args, desk: ServiceDesk, config: dict) -> int:
    """Run the interactive operator menu."""
    clear = bool(get_config_value("console.clear", config, True)) and not args.no_clear
    console = OperatorConsole(desk, clear=clear)
    return console.run()


def cmd_queues(args, desk: ServiceDesk, config: dict) -> int:
    """Print the queue overview."""
    print(render_queues(desk.list_by_stage()))
    return 0


def cmd_history(args, desk: ServiceDesk, config: dict) -> int:
    """Print the service history."""
    if not args.device:
        print(desk.read_history())
        return 0

    try:
        records = desk.history.records(args.device)
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not records:
        print(f"No history records for {args.device}.")
        return 0
    print(f"\nHistory for {args.device} ({len(records)} records)")
    for block in records:
        print(block)
        print()
    return 0


def cmd_export_history(args, desk: ServiceDesk, config: dict) -> int:
    """Write the rendered history to a file."""
    try:
        path = desk.export_history(args.path)
    except PersistenceError as e:
        print(f"❌ Error al exportar historial: {e}", file=sys.stderr)
        return 1
    print(f"📤 Historial exportado a: {path}")
    return 0


def cmd_verify(args, desk: ServiceDesk, config: dict) -> int:
    """Check that the snapshot and history files are usable."""
    report = desk.verify_integrity()
    print(f"  config:   {config.get('_config_source')} (env: {config.get('_active_env')})")
    print(f"  snapshot: {desk.store.path} [{'ok' if report.snapshot_ok else 'FAIL'}]")
    print(f"  history:  {desk.history.path} [{'ok' if report.history_ok else 'FAIL'}]")
    for problem in report.problems:
        print(problem, file=sys.stderr)
    return 0 if report.ok else 1


COMMANDS = {
    "menu": cmd_menu,
    "queues": cmd_queues,
    "history": cmd_history,
    "export-history": cmd_export_history,
    "verify": cmd_verify,
}


def build_parser() -> argparse.ArgumentParser:
    _cli_dir = Path(__file__).resolve().parent         # workshop/

    parser = argparse.ArgumentParser(
        prog="repair-desk",
        description="Repair Desk — computer repair job tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", default=str(_cli_dir / "config.yaml"),
        help="Config YAML (default: workshop/config.yaml)",
    )
    parser.add_argument("--snapshot", help="Snapshot file (overrides storage.snapshot)")
    parser.add_argument("--history", help="History log file (overrides storage.history)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR (overrides logging.level)")

    subs = parser.add_subparsers(dest="command", help="Command")

    menu_p = subs.add_parser("menu", help="Interactive operator menu (default)")
    menu_p.add_argument("--no-clear", action="store_true", help="Do not clear the screen")

    subs.add_parser("queues", help="Print every stage queue")

    history_p = subs.add_parser("history", help="Print the service history")
    history_p.add_argument("--device", "-d", help="Only records for this serial number")

    export_p = subs.add_parser("export-history", help="Write the history to a file")
    export_p.add_argument("path")

    subs.add_parser("verify", help="Check snapshot and history files")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        args.command = "menu"
        args.no_clear = False

    config = load_config(base_path=args.config)
    configure_logging(level=args.log_level or str(get_config_value("logging.level", config, "WARNING")))

    store = SnapshotStore(args.snapshot or get_config_value("storage.snapshot", config))
    history = HistoryLog(args.history or get_config_value("storage.history", config))
    desk = ServiceDesk.open(store, history)

    return COMMANDS[args.command](args, desk, config)


if __name__ == "__main__":
    sys.exit(main())
