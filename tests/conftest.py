"""Shared test fixtures."""

import subprocess
import sys
from pathlib import Path

import pytest

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from swapfc.core.config import SwapfcConfig  # noqa: E402
from swapfc.core.context import Context  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class MockContext(Context):
    """
    Mock Context for testing without root or real swap devices.

    Commands and /proc files are mocked. Filesystem writes go to the real
    filesystem, so tests point every path at tmp_path.
    """

    def __init__(
        self,
        tools_available: list[str] | None = None,
        command_outputs: dict[tuple | str, str | Exception | subprocess.CompletedProcess] | None = None,
        file_contents: dict[str, str] | None = None,
        env: dict[str, str] | None = None,
        disk_free_bytes: int = 1024**4,
    ):
        self.tools_available = set(tools_available or [])
        self.command_outputs = command_outputs or {}
        self.file_contents = file_contents or {}
        self.env = env or {}
        self.disk_free_bytes = disk_free_bytes
        self.commands_run: list[list[str]] = []
        self.sleeps: list[float] = []
        self.remove_errors: dict[str, OSError] = {}

    def check_tool(self, name: str) -> bool:
        """Check if tool is in mocked available list."""
        return name in self.tools_available

    def run(
        self,
        cmd: list[str],
        check: bool = False,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        """Return mocked command output, looked up by full command then by program."""
        self.commands_run.append(cmd)
        key = tuple(cmd)
        if key in self.command_outputs:
            output = self.command_outputs[key]
        elif cmd[0] in self.command_outputs:
            output = self.command_outputs[cmd[0]]
        else:
            raise KeyError(f"No mock output for command: {cmd}")

        if isinstance(output, Exception):
            raise output

        # Allow passing CompletedProcess directly for non-zero exit codes
        if isinstance(output, subprocess.CompletedProcess):
            return output

        return subprocess.CompletedProcess(
            cmd,
            returncode=0,
            stdout=output,
            stderr="",
        )

    def read_file(self, path: str) -> str:
        """Return mocked file content."""
        if path not in self.file_contents:
            raise FileNotFoundError(f"No mock content for: {path}")
        return self.file_contents[path]

    def file_exists(self, path: str) -> bool:
        """Check mocked files, then the real filesystem."""
        return path in self.file_contents or Path(path).exists()

    def remove(self, path: str) -> None:
        """Remove a file unless a failure was registered for it."""
        if path in self.remove_errors:
            raise self.remove_errors[path]
        super().remove(path)

    def disk_free(self, path: str) -> int:
        """Return mocked free space."""
        return self.disk_free_bytes

    def get_env(self, key: str, default: str | None = None) -> str | None:
        """Return mocked environment variable."""
        return self.env.get(key, default)

    def sleep(self, seconds: float) -> None:
        """Record the sleep instead of blocking."""
        self.sleeps.append(seconds)

    def commands_for(self, program: str) -> list[list[str]]:
        """Commands run for one program, in order."""
        return [cmd for cmd in self.commands_run if cmd[0] == program]


SWAP_TOOLS_OK = {"mkswap": "", "swapon": "", "swapoff": ""}


@pytest.fixture
def mock_context():
    """Factory fixture for creating MockContext instances."""
    def _create(**kwargs) -> MockContext:
        kwargs.setdefault("command_outputs", dict(SWAP_TOOLS_OK))
        kwargs.setdefault("tools_available", ["mkswap", "swapon", "swapoff"])
        return MockContext(**kwargs)
    return _create


@pytest.fixture
def make_config(tmp_path):
    """Factory fixture for small configs rooted in tmp_path."""
    def _create(**kwargs) -> SwapfcConfig:
        values = {
            "pool_path": str(tmp_path / "pool"),
            "lock_path": str(tmp_path / "run" / ".lock"),
            "chunk_size": 64 * 1024,
            "buffer_size": 4 * 1024,
            "log_dir": str(tmp_path / "log"),
        }
        values.update(kwargs)
        return SwapfcConfig(**values)
    return _create


def load_fixture(category: str, name: str) -> str:
    """Load a fixture file by category and name."""
    fixture_path = FIXTURES_DIR / category / name
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture not found: {fixture_path}")
    return fixture_path.read_text()


def pool_files(config: SwapfcConfig) -> list[str]:
    """Names of entries in the pool directory."""
    pool = Path(config.pool_path)
    if not pool.exists():
        return []
    return sorted((p.name for p in pool.iterdir()), key=int)
