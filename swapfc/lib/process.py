"""Process utilities."""

import subprocess
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from swapfc.core.context import Context


class CommandError(Exception):
    """Error running a command."""

    def __init__(self, message: str, cmd: list[str], returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


def run_command(
    cmd: list[str],
    context: "Context | None" = None,
    timeout: int | None = 60,
) -> str:
    """
    Run a command that must succeed and return its output.

    Args:
        cmd: Command and arguments
        context: Execution context (for testing)
        timeout: Timeout in seconds

    Returns:
        Command stdout

    Raises:
        CommandError: If the command cannot be started, times out or exits non-zero
    """
    if context is None:
        from swapfc.core.context import Context
        context = Context()

    try:
        result = context.run(cmd, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise CommandError(f"Command timed out: {' '.join(cmd)}", cmd) from e
    except (OSError, subprocess.SubprocessError) as e:
        raise CommandError(f"Command failed: {' '.join(cmd)}: {e}", cmd) from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        message = f"Command failed with exit code {result.returncode}: {' '.join(cmd)}"
        if stderr:
            message = f"{message}: {stderr}"
        raise CommandError(message, cmd, result.returncode, stderr)

    return result.stdout


def check_tool(
    name: str,
    context: "Context | None" = None,
    required: bool = False,
) -> bool:
    """
    Check if a tool exists in PATH.

    Args:
        name: Tool name to check
        context: Execution context (for testing)
        required: Raise if tool is missing

    Returns:
        True if tool exists

    Raises:
        CommandError: If required=True and tool is missing
    """
    if context is None:
        from swapfc.core.context import Context
        context = Context()

    exists = context.check_tool(name)

    if required and not exists:
        raise CommandError(f"Required tool not found: {name}", [name])

    return exists
