"""Core swapfc functionality."""

from swapfc.core.config import ConfigError, SwapfcConfig, load_config
from swapfc.core.context import Context
from swapfc.core.controller import Controller, SetupError, should_grow, should_shrink
from swapfc.core.logging import EventLogger, query_logs
from swapfc.core.notify import Notifier, NullNotifier
from swapfc.core.output import Output
from swapfc.core.pool import Outcome, PoolError, SwapPool
from swapfc.core.sentinel import CancellationToken, Sentinel, SentinelToken

__all__ = [
    "CancellationToken",
    "ConfigError",
    "Context",
    "Controller",
    "EventLogger",
    "Notifier",
    "NullNotifier",
    "Outcome",
    "Output",
    "PoolError",
    "Sentinel",
    "SentinelToken",
    "SetupError",
    "SwapPool",
    "SwapfcConfig",
    "load_config",
    "query_logs",
    "should_grow",
    "should_shrink",
]
