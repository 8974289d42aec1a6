"""Configuration loading with layered overrides."""

import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

SYSTEM_CONFIG = Path("/etc/swapfc/swapfc.yaml")

# mkswap refuses areas smaller than ten 4 KiB pages.
MIN_CHUNK_SIZE = 40 * 1024

SIZE_UNITS = {
    "": 1,
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "t": 1024**4,
}


class ConfigError(Exception):
    """Error loading or validating configuration."""

    pass


@dataclass(frozen=True)
class SwapfcConfig:
    """Settings for the swap file pool controller."""

    pool_path: str = "/var/lib/systemd-swap/swapfc"
    lock_path: str = "/run/systemd/swap/swapfc/.lock"
    chunk_size: int = 256 * 1024**2
    buffer_size: int = 4 * 1024**2
    free_percent: int = 15
    remove_free_percent: int = 55
    min_count: int = 0
    max_count: int = 32
    interval: float = 1.0
    priority: int | None = None
    log_dir: str = "/var/log/swapfc"

    def swapfile_path(self, index: int) -> str:
        """Path of pool file number index."""
        return str(Path(self.pool_path) / str(index))


def parse_size(value: Any) -> int:
    """
    Parse a size such as 256M, 4MiB, 1G or a plain byte count.

    Args:
        value: Integer or size string

    Returns:
        Size in bytes

    Raises:
        ConfigError: If the value is not a valid size
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        return value

    expr = str(value).strip().lower()
    match = re.match(r"^([0-9]+)\s*([kmgt]?)(i?b)?$", expr)
    if not match:
        raise ConfigError(f"Invalid size: {value!r}")
    return int(match.group(1)) * SIZE_UNITS[match.group(2)]


def load_config_file(path: Path, required: bool = False) -> dict[str, Any]:
    """
    Load a YAML config file.

    Args:
        path: Path to the YAML file
        required: Raise if the file does not exist

    Returns:
        Mapping of settings (empty if the file is absent and not required)

    Raises:
        ConfigError: If the file is required and missing, or is not valid YAML
    """
    if not path.exists():
        if required:
            raise ConfigError(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Unable to read config {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a YAML mapping: {path}")

    return data


def apply_overrides(config: SwapfcConfig, data: dict[str, Any]) -> SwapfcConfig:
    """Return a copy of config with the values from data applied."""
    known = {f.name for f in fields(SwapfcConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if key in ("chunk_size", "buffer_size"):
            values[key] = parse_size(value)
        elif key in ("free_percent", "remove_free_percent", "min_count", "max_count"):
            values[key] = _as_int(key, value)
        elif key == "priority":
            values[key] = None if value is None else _as_int(key, value)
        elif key == "interval":
            try:
                values[key] = float(value)
            except (TypeError, ValueError):
                raise ConfigError(f"{key} must be a number, got {value!r}")
        else:
            values[key] = str(value)

    return replace(config, **values)


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    return value


def validate_config(config: SwapfcConfig) -> None:
    """
    Check a configuration for consistency.

    Raises:
        ConfigError: Describing the first problem found
    """
    if not 0 <= config.free_percent < config.remove_free_percent <= 100:
        raise ConfigError(
            "Expected 0 <= free_percent < remove_free_percent <= 100, got "
            f"free_percent={config.free_percent}, "
            f"remove_free_percent={config.remove_free_percent}"
        )
    if config.max_count < 1:
        raise ConfigError(f"max_count must be at least 1, got {config.max_count}")
    if not 0 <= config.min_count <= config.max_count:
        raise ConfigError(
            f"min_count must be between 0 and max_count ({config.max_count}), "
            f"got {config.min_count}"
        )
    if config.chunk_size < MIN_CHUNK_SIZE:
        raise ConfigError(
            f"chunk_size must be at least {MIN_CHUNK_SIZE} bytes, got {config.chunk_size}"
        )
    if not 0 < config.buffer_size <= config.chunk_size:
        raise ConfigError(
            f"Expected 0 < buffer_size <= chunk_size, got buffer_size={config.buffer_size}, "
            f"chunk_size={config.chunk_size}"
        )
    if config.interval <= 0:
        raise ConfigError(f"interval must be positive, got {config.interval}")
    if config.priority is not None and not -1 <= config.priority <= 32767:
        raise ConfigError(f"priority must be between -1 and 32767, got {config.priority}")

    pool = Path(config.pool_path)
    lock = Path(config.lock_path)
    if not pool.is_absolute() or not lock.is_absolute():
        raise ConfigError("pool_path and lock_path must be absolute paths")
    if pool == lock.parent or pool in lock.parents:
        raise ConfigError("lock_path must be outside pool_path")


def load_config(path: Path | None = None, system_path: Path = SYSTEM_CONFIG) -> SwapfcConfig:
    """
    Load configuration with defaults -> system file -> explicit file precedence.

    Args:
        path: Explicit config file (must exist when given)
        system_path: System-wide config file (optional)

    Returns:
        Validated configuration

    Raises:
        ConfigError: If any layer is invalid
    """
    config = SwapfcConfig()
    config = apply_overrides(config, load_config_file(system_path))
    if path is not None:
        config = apply_overrides(config, load_config_file(path, required=True))

    validate_config(config)
    return config
