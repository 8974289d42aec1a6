"""Command-line interface for swapfc."""

import argparse
import json
import signal
import sys
from datetime import date
from pathlib import Path

from swapfc import __version__
from swapfc.core import (
    CancellationToken,
    ConfigError,
    Context,
    Controller,
    EventLogger,
    Notifier,
    Output,
    Sentinel,
    SetupError,
    SwapfcConfig,
    load_config,
    query_logs,
)
from swapfc.core.logging import LOG_LEVELS
from swapfc.lib.meminfo import StatError, read_active_swaps, read_memory_stats


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="swapfc",
        description="Grow and shrink a pool of swap files with memory pressure",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"swapfc {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file (overrides /etc/swapfc/swapfc.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Run the swap file pool daemon")
    run_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Echo debug events to stderr",
    )

    # status command
    status_parser = subparsers.add_parser("status", help="Show pool and memory state")
    status_parser.add_argument(
        "--format",
        choices=["plain", "json"],
        default="plain",
        help="Output format (default: plain)",
    )

    # stop command
    subparsers.add_parser("stop", help="Ask a running daemon to exit")

    # logs command
    logs_parser = subparsers.add_parser("logs", help="Show daemon events")
    logs_parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Day to show, YYYY-MM-DD (default: today)",
    )
    logs_parser.add_argument(
        "--level",
        choices=list(LOG_LEVELS),
        default="info",
        help="Minimum level (default: info)",
    )
    logs_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of entries",
    )
    logs_parser.add_argument(
        "--format",
        choices=["plain", "json"],
        default="plain",
        help="Output format (default: plain)",
    )

    return parser


def echo_level(args: argparse.Namespace, context: Context) -> str:
    """Stderr echo level from --verbose or SWAPFC_LOG_LEVEL."""
    if getattr(args, "verbose", False):
        return "debug"
    level = (context.get_env("SWAPFC_LOG_LEVEL") or "info").lower()
    return level if level in LOG_LEVELS else "info"


STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def install_signal_handlers(token: CancellationToken) -> dict:
    """
    Turn SIGTERM and SIGINT into a cancellation of token.

    The loop then stops after the current tick, so a grow or shrink in
    progress is never cut short.

    Returns:
        The previous handlers, for restore_signal_handlers()
    """
    def handle(signum, frame):
        token.cancel()

    previous = {}
    for signum in STOP_SIGNALS:
        previous[signum] = signal.signal(signum, handle)
    return previous


def restore_signal_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def cmd_run(args: argparse.Namespace, config: SwapfcConfig, context: Context) -> int:
    """Run the daemon until the lock file is removed or a stop signal arrives."""
    with EventLogger(Path(config.log_dir), echo_level=echo_level(args, context)) as logger:
        notifier = Notifier(context, logger=logger)
        controller = Controller(config, context, notifier=notifier, logger=logger)

        try:
            controller.start()
        except SetupError as e:
            logger.error("Startup failed", error=str(e))
            return 1

        token = controller.sentinel.token()
        previous = install_signal_handlers(token)
        try:
            controller.run(token)
        finally:
            restore_signal_handlers(previous)

    return 0


def cmd_status(args: argparse.Namespace, config: SwapfcConfig, context: Context) -> int:
    """Show pool files, their swap state and memory headroom."""
    output = Output()
    active = read_active_swaps(context)

    controller = Controller(config, context)
    indices = controller.pool.files()
    files = []
    for index in indices:
        path = config.swapfile_path(index)
        swap = active.get(path)
        files.append({
            "index": index,
            "active": swap is not None,
            "size_kb": swap["size_kb"] if swap else None,
            "used_kb": swap["used_kb"] if swap else None,
        })

    try:
        stats = read_memory_stats(context)
        ram_free = stats.ram_free_percent
        swap_free = stats.swap_free_percent
    except StatError as e:
        output.warning(str(e))
        ram_free = swap_free = None

    output.emit({
        "running": controller.sentinel.exists(),
        "pool_path": config.pool_path,
        "files": files,
        "ram_free_percent": ram_free,
        "swap_free_percent": swap_free,
        "thresholds": {
            "free_percent": config.free_percent,
            "remove_free_percent": config.remove_free_percent,
            "min_count": config.min_count,
            "max_count": config.max_count,
        },
    })

    if indices != list(range(1, len(indices) + 1)):
        output.warning(f"Swap file numbering has gaps: {indices}")
    inactive = [f["index"] for f in files if not f["active"]]
    if inactive:
        output.warning(f"Swap files present but not active: {inactive}")

    output.render(args.format, title="swapfc status")
    return 1 if output.warnings else 0


def cmd_stop(args: argparse.Namespace, config: SwapfcConfig, context: Context) -> int:
    """Remove the lock file so the daemon exits on its next poll."""
    sentinel = Sentinel(config.lock_path, context)
    if not sentinel.remove():
        print(f"swapfc is not running (no lock at {config.lock_path})", file=sys.stderr)
        return 1
    print("Stop requested")
    return 0


def cmd_logs(args: argparse.Namespace, config: SwapfcConfig, context: Context) -> int:
    """Print logged events."""
    entries = query_logs(
        Path(config.log_dir),
        log_date=args.date,
        min_level=args.level,
        limit=args.limit,
    )

    if not entries:
        print("No log entries found.")
        return 0

    for entry in entries:
        if args.format == "json":
            print(json.dumps(entry))
        else:
            extra = {
                k: v for k, v in entry.items()
                if k not in ("timestamp", "level", "source", "message")
            }
            details = " ".join(f"{k}={v}" for k, v in extra.items())
            line = f"{entry.get('timestamp', '')} {entry.get('level', '').upper():7} {entry.get('message', '')}"
            print(f"{line} {details}".rstrip())

    return 0


def main(argv: list[str] | None = None, context: Context | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if context is None:
        context = Context()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    commands = {
        "run": cmd_run,
        "status": cmd_status,
        "stop": cmd_stop,
        "logs": cmd_logs,
    }

    return commands[args.command](args, config, context)


if __name__ == "__main__":
    sys.exit(main())
