"""The bounded pool of swap files."""

from enum import Enum
from typing import TYPE_CHECKING

from swapfc.core.notify import (
    STATUS_ALLOCATING,
    STATUS_DEALLOCATING,
    STATUS_MONITORING,
    NullNotifier,
)
from swapfc.lib.filesystem import FileError, FileExists, allocate_file, disk_free, remove_file
from swapfc.lib.swap import SwapCommandError, SwapUtility

if TYPE_CHECKING:
    from swapfc.core.config import SwapfcConfig
    from swapfc.core.context import Context
    from swapfc.core.logging import EventLogger


class Outcome(Enum):
    """Result of a pool operation."""

    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class PoolError(Exception):
    """The pool counter left its bounds."""

    pass


class SwapPool:
    """
    Swap files 1..allocated under config.pool_path, all swapped on.

    Files are added at allocated + 1 and removed from allocated, so the pool
    never has gaps. A failed grow or shrink rolls back so that the counter
    keeps matching what is on disk and active.
    """

    def __init__(
        self,
        config: "SwapfcConfig",
        context: "Context",
        swap: SwapUtility | None = None,
        notifier: NullNotifier | None = None,
        logger: "EventLogger | None" = None,
    ):
        self.config = config
        self.context = context
        self.swap = swap or SwapUtility(context, priority=config.priority)
        self.notifier = notifier or NullNotifier()
        self.logger = logger
        self._allocated = 0

    @property
    def allocated(self) -> int:
        return self._allocated

    def path(self, index: int) -> str:
        return self.config.swapfile_path(index)

    def _log(self, level: str, message: str, **extra) -> None:
        if self.logger is not None:
            getattr(self.logger, level)(message, **extra)

    def _check_bounds(self) -> None:
        if not 0 <= self._allocated <= self.config.max_count:
            raise PoolError(
                f"Pool count {self._allocated} outside [0, {self.config.max_count}]"
            )

    def has_room(self) -> bool:
        """True if the pool filesystem can hold one more file."""
        try:
            free = disk_free(self.config.pool_path, context=self.context)
        except FileError as e:
            self._log("warning", "Unable to check free disk space", error=str(e))
            return False
        if free < self.config.chunk_size:
            self._log(
                "warning",
                "Not enough disk space for another swap file",
                free_bytes=free,
                chunk_size=self.config.chunk_size,
            )
            return False
        return True

    def grow(self) -> Outcome:
        """Add swap file allocated + 1."""
        if self._allocated >= self.config.max_count:
            return Outcome.SKIPPED
        if not self.has_room():
            return Outcome.SKIPPED

        self.notifier.notify(STATUS_ALLOCATING)
        self._allocated += 1
        path = self.path(self._allocated)

        try:
            allocate_file(
                path,
                self.config.chunk_size,
                self.config.buffer_size,
                context=self.context,
            )
        except FileExists as e:
            # May still be active swap from an earlier run.
            self._log(
                "error",
                "Swap file already present, leaving it in place",
                path=path,
                error=str(e),
            )
            return self._abort_grow()
        except FileError as e:
            self._log("error", "Swap file allocation failed", path=path, error=str(e))
            self._discard(path)
            return self._abort_grow()

        try:
            self.swap.format(path)
            self.swap.activate(path)
        except SwapCommandError as e:
            self._log("error", "Swap file allocation failed", path=path, error=str(e))
            self._discard(path)
            return self._abort_grow()

        self._check_bounds()
        self._log("info", "Swap file allocated", path=path, allocated=self._allocated)
        self.notifier.notify(STATUS_MONITORING)
        return Outcome.OK

    def _abort_grow(self) -> Outcome:
        self._allocated -= 1
        self.notifier.notify(STATUS_MONITORING)
        return Outcome.FAILED

    def _discard(self, path: str) -> None:
        try:
            remove_file(path, context=self.context, missing_ok=True)
        except FileError as e:
            self._log("error", "Unable to remove partial swap file", path=path, error=str(e))

    def shrink(self) -> Outcome:
        """
        Remove the highest numbered swap file.

        If the file can't be deleted after swapoff it is swapped on again and
        stays counted. If that fails too, deletion is retried once more; a file
        that survives both is logged as orphaned and dropped from the count, so
        that later shrinks move on to the next file.
        """
        if self._allocated == 0:
            return Outcome.SKIPPED

        self.notifier.notify(STATUS_DEALLOCATING)
        path = self.path(self._allocated)

        try:
            self.swap.deactivate(path)
        except SwapCommandError as e:
            self._log("error", "Swap file deactivation failed", path=path, error=str(e))
            self.notifier.notify(STATUS_MONITORING)
            return Outcome.FAILED

        outcome = Outcome.OK
        try:
            remove_file(path, context=self.context)
        except FileError as e:
            self._log("error", "Swap file removal failed", path=path, error=str(e))
            if self._reactivate(path):
                self.notifier.notify(STATUS_MONITORING)
                return Outcome.FAILED
            outcome = self._retry_remove(path)

        self._allocated -= 1
        self._check_bounds()
        if outcome is Outcome.OK:
            self._log("info", "Swap file removed", path=path, allocated=self._allocated)
        self.notifier.notify(STATUS_MONITORING)
        return outcome

    def _reactivate(self, path: str) -> bool:
        try:
            self.swap.activate(path)
        except SwapCommandError as e:
            self._log("error", "Unable to re-enable swap file", path=path, error=str(e))
            return False
        return True

    def _retry_remove(self, path: str) -> Outcome:
        try:
            remove_file(path, context=self.context, missing_ok=True)
        except FileError as e:
            self._log(
                "error",
                "Orphaned inactive swap file, remove it by hand",
                path=path,
                error=str(e),
            )
            return Outcome.FAILED
        return Outcome.OK

    def files(self) -> list[int]:
        """Indices of the numbered files present in the pool directory."""
        try:
            names = self.context.list_dir(self.config.pool_path)
        except OSError:
            return []
        return sorted(int(name) for name in names if name.isdigit())
