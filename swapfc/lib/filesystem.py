"""Filesystem utilities for the swap file pool."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from swapfc.core.context import Context

SWAPFILE_MODE = 0o600


class FileError(Exception):
    """Error accessing a file."""

    pass


class FileExists(FileError):
    """A file that was to be created is already there."""

    pass


def _default_context(context: "Context | None") -> "Context":
    if context is None:
        from swapfc.core.context import Context
        context = Context()
    return context


def read_file(
    path: str,
    context: "Context | None" = None,
    default: str | None = None,
) -> str:
    """
    Read file contents.

    Args:
        path: Path to file
        context: Execution context (for testing)
        default: Default value if file doesn't exist

    Returns:
        File contents

    Raises:
        FileError: If the file can't be read and no default provided
    """
    context = _default_context(context)

    try:
        return context.read_file(path)
    except FileNotFoundError:
        if default is not None:
            return default
        raise FileError(f"File not found: {path}")
    except OSError as e:
        raise FileError(f"Unable to read {path}: {e}")


def ensure_dir(path: str, context: "Context | None" = None) -> None:
    """
    Create a directory and its parents if missing.

    Raises:
        FileError: If the directory can't be created
    """
    context = _default_context(context)

    try:
        context.make_dirs(path)
    except OSError as e:
        raise FileError(f"Unable to create directory {path}: {e}")


def allocate_file(
    path: str,
    size: int,
    buffer_size: int,
    context: "Context | None" = None,
) -> None:
    """
    Create an owner-only file of exactly size zero bytes.

    The file must not exist yet. A partly written file is left behind on
    failure for the caller to remove.

    Args:
        path: File to create
        size: Total bytes
        buffer_size: Write granularity
        context: Execution context (for testing)

    Raises:
        FileExists: If path already exists; it is left untouched
        FileError: If the file can't be created or written
    """
    context = _default_context(context)

    try:
        context.write_zeros(path, size, buffer_size, mode=SWAPFILE_MODE)
    except FileExistsError:
        raise FileExists(f"Swap file already exists: {path}")
    except OSError as e:
        raise FileError(f"Unable to prepare swap file {path}: {e}")


def remove_file(path: str, context: "Context | None" = None, missing_ok: bool = False) -> None:
    """
    Remove a file.

    Raises:
        FileError: If the file can't be removed
    """
    context = _default_context(context)

    try:
        context.remove(path)
    except FileNotFoundError:
        if not missing_ok:
            raise FileError(f"File not found: {path}")
    except OSError as e:
        raise FileError(f"Unable to remove {path}: {e}")


def disk_free(path: str, context: "Context | None" = None) -> int:
    """
    Free bytes on the filesystem holding path.

    Raises:
        FileError: If the filesystem can't be queried
    """
    context = _default_context(context)

    try:
        return context.disk_free(path)
    except OSError as e:
        raise FileError(f"Unable to query free space on {path}: {e}")
