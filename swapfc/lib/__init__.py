"""OS-facing helpers for the swap file pool."""

from swapfc.lib.filesystem import (
    FileError,
    FileExists,
    allocate_file,
    disk_free,
    ensure_dir,
    read_file,
    remove_file,
)
from swapfc.lib.meminfo import MemoryStats, StatError, free_percent, read_active_swaps, read_memory_stats
from swapfc.lib.process import CommandError, check_tool, run_command
from swapfc.lib.swap import SwapCommandError, SwapUtility

__all__ = [
    "CommandError",
    "FileError",
    "FileExists",
    "MemoryStats",
    "StatError",
    "SwapCommandError",
    "SwapUtility",
    "allocate_file",
    "check_tool",
    "disk_free",
    "ensure_dir",
    "free_percent",
    "read_active_swaps",
    "read_file",
    "read_memory_stats",
    "remove_file",
    "run_command",
]
