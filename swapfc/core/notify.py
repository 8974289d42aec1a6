"""Best-effort status notifications to the service manager."""

from collections.abc import Callable
from typing import TYPE_CHECKING

from systemd import daemon

if TYPE_CHECKING:
    from swapfc.core.context import Context
    from swapfc.core.logging import EventLogger

STATUS_ALLOCATING = "Allocating swap file..."
STATUS_DEALLOCATING = "Deallocating swap file..."
STATUS_MONITORING = "Monitoring memory status..."


class NullNotifier:
    """Notifier that discards everything."""

    def notify(self, status: str) -> None:
        pass

    def ready(self, status: str | None = None) -> None:
        pass

    def stopping(self) -> None:
        pass


class Notifier(NullNotifier):
    """
    Sends sd_notify messages through python-systemd.

    Only active when the service manager exported NOTIFY_SOCKET. Failures are
    logged at debug level and never raised.
    """

    def __init__(
        self,
        context: "Context",
        logger: "EventLogger | None" = None,
        send: Callable[[str], bool] | None = None,
    ):
        self.logger = logger
        self.send = send or daemon.notify
        self.enabled = bool(context.get_env("NOTIFY_SOCKET"))

    def _debug(self, message: str, **extra) -> None:
        if self.logger is not None:
            self.logger.debug(message, **extra)

    def _send(self, fields: list[str]) -> None:
        if not self.enabled:
            return
        message = "\n".join(fields)
        try:
            delivered = self.send(message)
        except OSError as e:
            self._debug("Status notification failed", message=message, error=str(e))
            return
        if not delivered:
            self._debug("Status notification not delivered", message=message)

    def notify(self, status: str) -> None:
        """Publish a human readable status line."""
        self._send([f"STATUS={status}"])

    def ready(self, status: str | None = None) -> None:
        """Report startup completion, optionally with a status line."""
        fields = ["READY=1"]
        if status:
            fields.append(f"STATUS={status}")
        self._send(fields)

    def stopping(self) -> None:
        """Report that the daemon is shutting down."""
        self._send(["STOPPING=1"])
