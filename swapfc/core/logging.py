"""JSONL event logging for the swap file pool daemon."""

import json
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, TextIO


# Log level ordering
LOG_LEVELS = {"debug": 0, "info": 1, "warning": 2, "error": 3}

LOG_NAME = "swapfc"


def get_log_path(base_path: Path, log_date: date | None = None, name: str = LOG_NAME) -> Path:
    """
    Get the log file path for a given day.

    Args:
        base_path: Base directory for logs
        log_date: Day of the log (default: today)
        name: Log name (without .jsonl extension)

    Returns:
        Path to the log file: {base}/{date}/{name}.jsonl
    """
    if log_date is None:
        log_date = date.today()
    return base_path / log_date.isoformat() / f"{name}.jsonl"


class EventLogger:
    """
    JSONL logger for daemon events.

    Writes structured log entries to a per-day JSONL file under base_path and
    echoes entries at or above echo_level to a text stream.
    """

    def __init__(
        self,
        base_path: Path | None = None,
        source: str = LOG_NAME,
        echo_level: str | None = "warning",
        stream: TextIO | None = None,
    ):
        """
        Initialize logger.

        Args:
            base_path: Base directory for log files (None disables the file)
            source: Value of the "source" field in every entry
            echo_level: Minimum level echoed to stream (None disables echo)
            stream: Echo target (default: stderr)
        """
        self.base_path = base_path
        self.source = source
        self.echo_level = echo_level
        self.stream = stream
        self._file = None
        self._file_path: Path | None = None
        self._disabled = False

    def _ensure_file(self) -> None:
        """Ensure today's log file is open."""
        path = get_log_path(self.base_path)
        if self._file is not None and path == self._file_path:
            return
        self.close()
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(path, "a")
        self._file_path = path

    def _log(self, level: str, message: str, **extra: Any) -> None:
        """Write a log entry."""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "source": self.source,
            "message": message,
            **extra,
        }

        if self.base_path is not None and not self._disabled:
            try:
                self._ensure_file()
                self._file.write(json.dumps(entry, default=str) + "\n")
                self._file.flush()
            except OSError as e:
                # Echo only from here on.
                self._disabled = True
                self._echo("error", f"Event log disabled: {e}", {})

        if self.echo_level is not None and LOG_LEVELS[level] >= LOG_LEVELS[self.echo_level]:
            self._echo(level, message, extra)

    def _echo(self, level: str, message: str, extra: dict[str, Any]) -> None:
        stream = self.stream or sys.stderr
        details = " ".join(f"{k}={v}" for k, v in extra.items())
        line = f"{level.upper()}: {message}"
        if details:
            line = f"{line} ({details})"
        print(line, file=stream)

    def debug(self, message: str, **extra: Any) -> None:
        """Log debug message."""
        self._log("debug", message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        """Log info message."""
        self._log("info", message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        """Log warning message."""
        self._log("warning", message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        """Log error message."""
        self._log("error", message, **extra)

    def close(self) -> None:
        """Close the log file."""
        if self._file is not None:
            self._file.close()
            self._file = None
            self._file_path = None

    def __enter__(self) -> "EventLogger":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


def query_logs(
    base_path: Path,
    log_date: date | None = None,
    min_level: str = "debug",
    limit: int | None = None,
    name: str = LOG_NAME,
) -> list[dict[str, Any]]:
    """
    Query log entries.

    Args:
        base_path: Base directory for logs
        log_date: Date to query (default: today)
        min_level: Minimum log level to include
        limit: Maximum number of entries to return
        name: Log name

    Returns:
        List of log entries matching criteria
    """
    log_file = get_log_path(base_path, log_date, name)

    if not log_file.exists():
        return []

    min_level_num = LOG_LEVELS.get(min_level, 0)
    results = []

    with open(log_file) as f:
        for line in f:
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
                entry_level = LOG_LEVELS.get(entry.get("level", "debug"), 0)
                if entry_level >= min_level_num:
                    results.append(entry)
                    if limit and len(results) >= limit:
                        break
            except json.JSONDecodeError:
                continue

    return results
