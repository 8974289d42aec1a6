"""Execution context for testability."""

import os
import shutil
import subprocess
import time
from pathlib import Path


class Context:
    """
    Wraps external calls for testability.

    In production: executes real commands and touches the real filesystem
    In tests: can be replaced with MockContext
    """

    def check_tool(self, name: str) -> bool:
        """Check if a tool exists in PATH."""
        return shutil.which(name) is not None

    def run(
        self,
        cmd: list[str],
        check: bool = False,
        timeout: int | None = 60,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        """
        Run a command and return result.

        Args:
            cmd: Command and arguments as list
            check: Raise on non-zero exit code
            timeout: Timeout in seconds
            **kwargs: Additional subprocess.run arguments

        Returns:
            CompletedProcess with stdout, stderr, returncode
        """
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=check,
            timeout=timeout,
            **kwargs,
        )

    def read_file(self, path: str) -> str:
        """Read file contents."""
        return Path(path).read_text()

    def file_exists(self, path: str) -> bool:
        """Check if file exists."""
        return Path(path).exists()

    def list_dir(self, path: str) -> list[str]:
        """List entry names in a directory."""
        return sorted(p.name for p in Path(path).iterdir())

    def make_dirs(self, path: str) -> None:
        """Create a directory and its parents."""
        Path(path).mkdir(parents=True, exist_ok=True)

    def touch(self, path: str) -> None:
        """Create an empty file, leaving an existing one alone."""
        Path(path).touch(exist_ok=True)

    def remove(self, path: str) -> None:
        """Remove a file."""
        Path(path).unlink()

    def write_zeros(self, path: str, size: int, buffer_size: int, mode: int = 0o600) -> None:
        """
        Create a file and fill it with zero bytes.

        The file is created with the given permission bits and written in
        buffer_size pieces so that the result is fully allocated, not sparse.
        An existing file is never opened; FileExistsError is raised instead.

        Args:
            path: File to create (must not exist)
            size: Total number of bytes to write
            buffer_size: Size of each write
            mode: Permission bits applied to the file
        """
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
        with os.fdopen(fd, "wb") as f:
            os.fchmod(f.fileno(), mode)
            buffer = bytes(buffer_size)
            remaining = size
            while remaining >= buffer_size:
                f.write(buffer)
                remaining -= buffer_size
            if remaining:
                f.write(buffer[:remaining])
            f.flush()
            os.fsync(f.fileno())

    def disk_free(self, path: str) -> int:
        """Get free bytes on the filesystem holding path."""
        return shutil.disk_usage(path).free

    def get_env(self, key: str, default: str | None = None) -> str | None:
        """Get environment variable."""
        return os.environ.get(key, default)

    def sleep(self, seconds: float) -> None:
        """Block for the given number of seconds."""
        time.sleep(seconds)
