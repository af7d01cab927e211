"""Locate and decode ``<cmd>{...}</cmd>`` payloads embedded in generated text."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Mapping, Optional

from .. import constants
from .errors import ParseError
from .models import ControlCommand

LOGGER = logging.getLogger(__name__)

_COMMAND_PATTERN = re.compile(
    re.escape(constants.COMMAND_OPEN_TAG)
    + r"(.*?)"
    + re.escape(constants.COMMAND_CLOSE_TAG),
    re.DOTALL,
)


def find_payload(text: str) -> Optional[str]:
    """Return the body of the first command tag, or ``None`` if there is none."""

    if not text:
        return None
    match = _COMMAND_PATTERN.search(text)
    if match is None:
        return None
    return match.group(1)


def _number(payload: Mapping[str, Any], key: str, *, required: bool) -> Any:
    if key not in payload:
        if required:
            raise ParseError(f"Command payload is missing {key!r}")
        return None
    value = payload[key]
    # bool is an int subclass; true/false are not numbers here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"Command field {key!r} must be a number, got {value!r}")
    try:
        finite = math.isfinite(value)
    except OverflowError as exc:
        raise ParseError(f"Command field {key!r} is too large") from exc
    if not finite:
        raise ParseError(f"Command field {key!r} must be finite, got {value!r}")
    return value


def decode_command(payload: str) -> ControlCommand:
    """Decode a command body.

    Raises:
        ParseError: If the body is not a JSON object with numeric
            ``speed`` and ``length`` fields.
    """

    try:
        data = json.loads(payload)
    except ValueError as exc:
        # JSONDecodeError, or an integer literal past the int conversion limit
        raise ParseError(f"Failed to parse control command: {exc}") from exc

    return command_from_mapping(data)


def command_from_mapping(data: Any) -> ControlCommand:
    """Build a command from already-decoded data such as a request body."""

    if not isinstance(data, Mapping):
        raise ParseError(
            f"Control command must be a JSON object, got {type(data).__name__}"
        )

    return ControlCommand(
        speed=_number(data, "speed", required=True),
        length=_number(data, "length", required=True),
        time=_number(data, "time", required=False),
    )


def extract_command(text: str) -> Optional[ControlCommand]:
    """Return the first embedded command in ``text``.

    Text without a command tag yields ``None``. A malformed payload is logged
    and also yields ``None``.
    """

    payload = find_payload(text)
    if payload is None:
        return None
    try:
        return decode_command(payload)
    except ParseError as exc:
        LOGGER.warning("%s", exc)
        return None


def encode_command(command: ControlCommand) -> str:
    """Serialise ``command`` in the tagged form understood by ``extract_command``."""

    body = json.dumps(command.as_payload())
    return f"{constants.COMMAND_OPEN_TAG}{body}{constants.COMMAND_CLOSE_TAG}"
