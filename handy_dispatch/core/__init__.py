"""Core primitives for handy-dispatch."""

from .errors import (
    ConfigurationError,
    ConnectivityError,
    DispatchError,
    InvalidModeError,
    ParseError,
    RemoteCallError,
    ValidationError,
)
from .extractor import (
    command_from_mapping,
    decode_command,
    encode_command,
    extract_command,
    find_payload,
)
from .models import ControlCommand, DispatchOutcome, DispatchStatus
from .protocols import CommandDriver, DeviceApi
from .validator import validate_command

__all__ = [
    "CommandDriver",
    "ConfigurationError",
    "ConnectivityError",
    "ControlCommand",
    "DeviceApi",
    "DispatchError",
    "DispatchOutcome",
    "DispatchStatus",
    "InvalidModeError",
    "ParseError",
    "RemoteCallError",
    "ValidationError",
    "command_from_mapping",
    "decode_command",
    "encode_command",
    "extract_command",
    "find_payload",
    "validate_command",
]
