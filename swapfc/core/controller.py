"""
Swap pool control loop.

Every interval the controller samples free RAM and free swap and adds or
removes at most one swap file:

- With no files in the pool only RAM is checked; the pool grows when free
  RAM drops below free_percent.
- With files in the pool, it grows when free swap drops below free_percent
  (up to max_count) and shrinks when free swap rises above
  remove_free_percent, but never below min_count or below two files.

The gap between the two thresholds keeps the pool from oscillating.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING

from swapfc.core.notify import STATUS_MONITORING, NullNotifier
from swapfc.core.pool import Outcome, SwapPool
from swapfc.core.sentinel import CancellationToken, Sentinel
from swapfc.lib.filesystem import FileError, ensure_dir
from swapfc.lib.meminfo import MemoryStats, StatError, read_memory_stats

if TYPE_CHECKING:
    from swapfc.core.config import SwapfcConfig
    from swapfc.core.context import Context
    from swapfc.core.logging import EventLogger

# Pools of this size or smaller are never shrunk.
SHRINK_FLOOR = 2

GROW = "grow"
SHRINK = "shrink"


class SetupError(Exception):
    """The controller environment could not be prepared."""

    pass


def should_grow(
    allocated: int,
    ram_free: int | None,
    swap_free: int | None,
    config: "SwapfcConfig",
) -> bool:
    """Whether the pool needs another file."""
    if allocated == 0:
        return ram_free is not None and ram_free < config.free_percent
    if allocated >= config.max_count:
        return False
    return swap_free is not None and swap_free < config.free_percent


def should_shrink(allocated: int, swap_free: int | None, config: "SwapfcConfig") -> bool:
    """Whether the pool can give back its newest file."""
    if allocated <= SHRINK_FLOOR or allocated <= config.min_count:
        return False
    return swap_free is not None and swap_free > config.remove_free_percent


class Controller:
    """Owns the swap pool and runs the sampling loop."""

    def __init__(
        self,
        config: "SwapfcConfig",
        context: "Context",
        pool: SwapPool | None = None,
        notifier: NullNotifier | None = None,
        logger: "EventLogger | None" = None,
        stat_source: Callable[[], MemoryStats] | None = None,
    ):
        self.config = config
        self.context = context
        self.notifier = notifier or NullNotifier()
        self.logger = logger
        self.pool = pool or SwapPool(config, context, notifier=self.notifier, logger=logger)
        self.stat_source = stat_source or (lambda: read_memory_stats(context))
        self.sentinel = Sentinel(config.lock_path, context)

    def _log(self, level: str, message: str, **extra) -> None:
        if self.logger is not None:
            getattr(self.logger, level)(message, **extra)

    def start(self) -> Sentinel:
        """
        Prepare directories, allocate the minimum pool and create the sentinel.

        Returns:
            The created sentinel

        Raises:
            SetupError: If any step fails
        """
        try:
            ensure_dir(self.config.pool_path, context=self.context)
        except FileError as e:
            raise SetupError(f"Unable to create swap file directory: {e}") from e

        missing = self.pool.swap.missing_tools()
        if missing:
            self._log("warning", "Swap tools not found in PATH", tools=",".join(missing))

        while self.pool.allocated < self.config.min_count:
            if self.pool.grow() is not Outcome.OK:
                raise SetupError(
                    f"Unable to allocate minimum swap file {self.pool.allocated + 1} "
                    f"of {self.config.min_count}"
                )

        try:
            self.sentinel.create()
        except FileError as e:
            raise SetupError(f"Unable to create lock: {e}") from e

        self._log(
            "info",
            "Swap file pool started",
            pool_path=self.config.pool_path,
            allocated=self.pool.allocated,
        )
        self.notifier.ready(STATUS_MONITORING)
        return self.sentinel

    def read_stats(self) -> MemoryStats | None:
        try:
            return self.stat_source()
        except StatError as e:
            self._log("warning", "Unable to read memory statistics", error=str(e))
            return None

    def tick(self) -> list[tuple[str, Outcome]]:
        """
        Sample memory once and grow or shrink the pool.

        Returns:
            The pool operations attempted, with their outcomes
        """
        actions: list[tuple[str, Outcome]] = []
        stats = self.read_stats()
        if stats is None:
            return actions

        if self.pool.allocated == 0:
            ram_free = stats.ram_free_percent
            if ram_free is None:
                self._log("debug", "Total RAM reported as zero, skipping")
            elif should_grow(0, ram_free, None, self.config):
                self._log("info", "Free RAM below threshold", ram_free_percent=ram_free)
                actions.append((GROW, self.pool.grow()))
            return actions

        swap_free = stats.swap_free_percent
        if swap_free is None:
            self._log("debug", "Total swap reported as zero, skipping")
            return actions

        if should_grow(self.pool.allocated, None, swap_free, self.config):
            self._log("info", "Free swap below threshold", swap_free_percent=swap_free)
            actions.append((GROW, self.pool.grow()))

        if should_shrink(self.pool.allocated, swap_free, self.config):
            self._log("info", "Free swap above removal threshold", swap_free_percent=swap_free)
            actions.append((SHRINK, self.pool.shrink()))

        return actions

    def run(self, token: CancellationToken | None = None) -> int:
        """
        Tick every interval until the token is cancelled.

        Swap files still allocated when the loop ends stay active.

        Args:
            token: Stop signal (default: the sentinel file)

        Returns:
            Number of ticks executed
        """
        if token is None:
            token = self.sentinel.token()

        ticks = 0
        while not token.cancelled:
            self.tick()
            ticks += 1
            self.context.sleep(self.config.interval)

        self._log("info", "Stop requested, exiting", allocated=self.pool.allocated, ticks=ticks)
        self.notifier.stopping()
        return ticks
