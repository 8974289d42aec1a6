"""Memory and swap statistics from /proc."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from swapfc.lib.filesystem import FileError, read_file

if TYPE_CHECKING:
    from swapfc.core.context import Context

MEMINFO_PATH = "/proc/meminfo"
SWAPS_PATH = "/proc/swaps"


class StatError(Exception):
    """Memory statistics could not be read."""

    pass


@dataclass(frozen=True)
class MemoryStats:
    """RAM and swap totals in bytes."""

    total_ram: int
    free_ram: int
    total_swap: int
    free_swap: int

    @property
    def ram_free_percent(self) -> int | None:
        return free_percent(self.free_ram, self.total_ram)

    @property
    def swap_free_percent(self) -> int | None:
        return free_percent(self.free_swap, self.total_swap)


def free_percent(free: int, total: int) -> int | None:
    """Integer percentage of free over total, None when total is zero."""
    if total <= 0:
        return None
    return free * 100 // total


def parse_meminfo(content: str) -> dict:
    """Parse /proc/meminfo content into a dictionary of kB values."""
    meminfo = {}
    for line in content.strip().split("\n"):
        if ":" in line:
            key, value = line.split(":", 1)
            # Extract numeric value (remove 'kB' suffix)
            parts = value.strip().split()
            if parts:
                try:
                    meminfo[key.strip()] = int(parts[0])
                except ValueError:
                    continue
    return meminfo


def read_memory_stats(context: "Context | None" = None) -> MemoryStats:
    """
    Read current RAM and swap figures.

    Raises:
        StatError: If /proc/meminfo is unreadable or lacks a required field
    """
    try:
        content = read_file(MEMINFO_PATH, context=context)
    except FileError as e:
        raise StatError(str(e)) from e

    meminfo = parse_meminfo(content)
    try:
        return MemoryStats(
            total_ram=meminfo["MemTotal"] * 1024,
            free_ram=meminfo["MemFree"] * 1024,
            total_swap=meminfo["SwapTotal"] * 1024,
            free_swap=meminfo["SwapFree"] * 1024,
        )
    except KeyError as e:
        raise StatError(f"Missing field in {MEMINFO_PATH}: {e.args[0]}") from e


def parse_swaps(content: str) -> dict[str, dict]:
    """
    Parse /proc/swaps into a mapping of swap path to its details.

    Sizes are reported in kB, as in the kernel table.
    """
    swaps = {}
    lines = content.strip().split("\n")
    for line in lines[1:]:
        parts = line.split()
        if len(parts) < 5:
            continue
        name, swap_type, size_kb, used_kb, priority = parts[:5]
        try:
            swaps[name] = {
                "type": swap_type,
                "size_kb": int(size_kb),
                "used_kb": int(used_kb),
                "priority": int(priority),
            }
        except ValueError:
            continue
    return swaps


def read_active_swaps(context: "Context | None" = None) -> dict[str, dict]:
    """Currently active swap areas, empty if /proc/swaps is unavailable."""
    try:
        content = read_file(SWAPS_PATH, context=context, default="")
    except FileError:
        return {}
    return parse_swaps(content)
