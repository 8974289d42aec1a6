"""Lifetime sentinel and cancellation tokens."""

from pathlib import Path
from typing import TYPE_CHECKING

from swapfc.lib.filesystem import FileError, ensure_dir, remove_file

if TYPE_CHECKING:
    from swapfc.core.context import Context


class CancellationToken:
    """Cancellation signal checked once per loop iteration."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class Sentinel:
    """
    Marker file whose presence keeps the controller running.

    Removing the file from outside is the shutdown request.
    """

    def __init__(self, path: str, context: "Context"):
        self.path = path
        self.context = context

    def create(self) -> None:
        """
        Create the marker and its parent directory.

        Raises:
            FileError: If either can't be created
        """
        ensure_dir(str(Path(self.path).parent), context=self.context)
        try:
            self.context.touch(self.path)
        except OSError as e:
            raise FileError(f"Unable to create lock {self.path}: {e}")

    def exists(self) -> bool:
        return self.context.file_exists(self.path)

    def remove(self) -> bool:
        """
        Remove the marker.

        Returns:
            True if a marker was removed, False if there was none
        """
        if not self.exists():
            return False
        remove_file(self.path, context=self.context, missing_ok=True)
        return True

    def token(self) -> "SentinelToken":
        return SentinelToken(self)


class SentinelToken(CancellationToken):
    """Token that reports cancellation once the sentinel file is gone."""

    def __init__(self, sentinel: Sentinel):
        super().__init__()
        self.sentinel = sentinel

    @property
    def cancelled(self) -> bool:
        return self._cancelled or not self.sentinel.exists()
