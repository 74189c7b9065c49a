"""Exceptions raised by the view exporter.

Messages name the resource or step that failed, never connection secrets.
"""


class ExportError(Exception):
    """Base exception for export operations."""

    pass


class ConfigurationError(ExportError):
    """Raised when exporter configuration is invalid or missing."""

    pass


class ListenerSetupError(ExportError):
    """Raised when the listener cannot connect, configure its session or subscribe."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        super().__init__(f"Listener setup failed during {step}: {message}")


class FetchError(ExportError):
    """Raised when a resource cannot be materialized."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"Fetch failed for resource '{name}': {message}")


class NotificationError(ExportError):
    """Raised when the notification feed breaks or delivers a malformed payload."""

    pass


class ChannelClosedError(ExportError):
    """Raised when emitting into a dispatch channel that has been closed."""

    pass


class MirrorError(ExportError):
    """Raised when mirroring artifacts to the remote host fails."""

    def __init__(self, host: str, returncode: int, message: str) -> None:
        self.host = host
        self.returncode = returncode
        super().__init__(f"Mirror to {host} failed (exit {returncode}): {message}")
