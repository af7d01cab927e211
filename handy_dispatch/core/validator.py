"""Bounds checks applied to every command before it reaches a driver."""

from __future__ import annotations

import math
from typing import Optional

from ..config import DeviceLimits
from .errors import ValidationError
from .models import ControlCommand, Number


def _check_range(field: str, value: Number, maximum: Optional[float]) -> None:
    if maximum is None:
        raise ValidationError(
            f"{field.capitalize()} limit is not configured", field=field, value=value
        )
    if not math.isfinite(value) or value < 0 or value > maximum:
        raise ValidationError(
            f"{field.capitalize()} out of range: {value} (allowed 0-{maximum:g})",
            field=field,
            value=value,
        )


def validate_command(
    command: ControlCommand,
    limits: Optional[DeviceLimits],
    *,
    max_run_seconds: Optional[float] = None,
) -> ControlCommand:
    """Return ``command`` unchanged if every field is within bounds.

    Values are never clamped. Missing limits reject every command.

    Raises:
        ValidationError: Naming the first offending field and its value.
    """

    limits = limits or DeviceLimits(max_speed=None, max_length=None)
    _check_range("speed", command.speed, limits.max_speed)
    _check_range("length", command.length, limits.max_length)

    if command.time is not None:
        if not math.isfinite(command.time) or command.time <= 0:
            raise ValidationError(
                f"Run time must be positive, got {command.time}",
                field="time",
                value=command.time,
            )
        if max_run_seconds is not None and command.time > max_run_seconds:
            raise ValidationError(
                f"Run time out of range: {command.time} (allowed up to {max_run_seconds:g}s)",
                field="time",
                value=command.time,
            )

    return command
