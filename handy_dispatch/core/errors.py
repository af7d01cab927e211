"""Error taxonomy for the dispatch pipeline.

Every error is recoverable: the dispatcher converts them into a
``DispatchOutcome`` and nothing is raised across the event boundary.
"""

from __future__ import annotations

from typing import Any, Optional


class DispatchError(RuntimeError):
    """Base class for failures isolated to a single dispatch."""

    code = "dispatch_error"


class ParseError(DispatchError):
    """Raised when an embedded command payload cannot be decoded."""

    code = "parse_error"


class ValidationError(DispatchError):
    """Raised when a command field falls outside its permitted range."""

    code = "validation_error"

    def __init__(self, message: str, *, field: str, value: Any) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidModeError(ValidationError):
    """Raised for a mode name the device does not support."""

    code = "invalid_mode"

    def __init__(self, mode: str) -> None:
        super().__init__(f"Invalid mode: {mode!r}", field="mode", value=mode)


class ConnectivityError(DispatchError):
    """Raised when the device reports that it is not connected."""

    code = "not_connected"


class RemoteCallError(DispatchError):
    """Raised when a call to the device API or webhook fails."""

    code = "remote_call_failed"

    def __init__(
        self,
        message: str,
        *,
        endpoint: str,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status


class ConfigurationError(DispatchError):
    """Raised when required connection settings are missing."""

    code = "configuration_error"
