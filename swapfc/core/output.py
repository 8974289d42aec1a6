"""Structured output helper for CLI commands."""

import json
from typing import Any


class Output:
    """Collects command results and prints them as plain text or JSON."""

    def __init__(self):
        self.data: dict[str, Any] = {}
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def emit(self, data: dict[str, Any]) -> None:
        """Store structured output data."""
        self.data.update(data)

    def error(self, message: str) -> None:
        """Record an error message."""
        self.errors.append(message)

    def warning(self, message: str) -> None:
        """Record a warning message."""
        self.warnings.append(message)

    def to_json(self) -> str:
        """Return data as JSON string."""
        payload = dict(self.data)
        if self.warnings:
            payload["warnings"] = self.warnings
        if self.errors:
            payload["errors"] = self.errors
        return json.dumps(payload, indent=2, default=str)

    def render(self, format: str = "plain", title: str | None = None) -> None:
        """Print output in the specified format.

        Args:
            format: Output format - "json" or "plain"
            title: Optional title for plain text output
        """
        if format == "json":
            print(self.to_json())
        else:
            print(self.to_plain(title))

    def to_plain(self, title: str | None = None) -> str:
        """Return data as formatted plain text."""
        lines = []

        if title:
            lines.append(title)
            lines.append("=" * len(title))
            lines.append("")

        for key, value in self.data.items():
            self._render_value(lines, key, value, indent=0)

        if self.warnings:
            lines.append("")
            for warning in self.warnings:
                lines.append(f"[WARNING] {warning}")

        if self.errors:
            lines.append("")
            for error in self.errors:
                lines.append(f"[ERROR] {error}")

        return "\n".join(lines)

    def _render_value(self, lines: list, key: str | int, value: Any, indent: int = 0) -> None:
        """Recursively render a value with proper formatting."""
        prefix = "  " * indent

        if isinstance(key, int):
            display_key = str(key)
        else:
            display_key = str(key).replace("_", " ").title()

        if isinstance(value, dict):
            lines.append(f"{prefix}{display_key}:")
            for k, v in value.items():
                self._render_value(lines, k, v, indent + 1)
        elif isinstance(value, list):
            if not value:
                lines.append(f"{prefix}{display_key}: (none)")
            elif all(isinstance(x, (str, int, float, bool)) for x in value):
                lines.append(f"{prefix}{display_key}: {', '.join(str(x) for x in value)}")
            else:
                lines.append(f"{prefix}{display_key}:")
                for item in value:
                    if isinstance(item, dict):
                        summary = ", ".join(f"{k}={v}" for k, v in item.items())
                        lines.append(f"{prefix}  - {summary}")
                    else:
                        lines.append(f"{prefix}  - {item}")
        elif isinstance(value, bool):
            lines.append(f"{prefix}{display_key}: {'yes' if value else 'no'}")
        elif value is None:
            lines.append(f"{prefix}{display_key}: n/a")
        else:
            lines.append(f"{prefix}{display_key}: {value}")
