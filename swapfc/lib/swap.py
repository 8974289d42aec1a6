"""Swap activation utilities: mkswap, swapon, swapoff."""

from typing import TYPE_CHECKING

from swapfc.lib.process import CommandError, check_tool, run_command

if TYPE_CHECKING:
    from swapfc.core.context import Context

SWAP_TOOLS = ("mkswap", "swapon", "swapoff")


class SwapCommandError(CommandError):
    """A swap utility failed."""

    pass


class SwapUtility:
    """
    Turns backing files on and off as kernel swap.

    format() must run once on a file before its first activate().
    """

    def __init__(self, context: "Context", priority: int | None = None, timeout: int | None = 60):
        self.context = context
        self.priority = priority
        self.timeout = timeout

    def _run(self, cmd: list[str]) -> None:
        try:
            run_command(cmd, context=self.context, timeout=self.timeout)
        except CommandError as e:
            raise SwapCommandError(str(e), e.cmd, e.returncode, e.stderr) from e

    def format(self, path: str) -> None:
        """Write a swap signature to path."""
        self._run(["mkswap", path])

    def activate(self, path: str) -> None:
        """Enable path as swap."""
        cmd = ["swapon"]
        if self.priority is not None:
            cmd += ["-p", str(self.priority)]
        self._run(cmd + [path])

    def deactivate(self, path: str) -> None:
        """Disable swapping on path."""
        self._run(["swapoff", path])

    def missing_tools(self) -> list[str]:
        """Names of swap tools not found in PATH."""
        return [tool for tool in SWAP_TOOLS if not check_tool(tool, context=self.context)]
