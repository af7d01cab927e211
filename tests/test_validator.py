import math

import pytest

from handy_dispatch.config import DeviceLimits
from handy_dispatch.core import ControlCommand, ValidationError, validate_command

LIMITS = DeviceLimits(max_speed=10, max_length=100)


def test_accepts_command_within_bounds_unchanged() -> None:
    command = ControlCommand(speed=5, length=50)

    assert validate_command(command, LIMITS) is command


def test_accepts_boundary_values() -> None:
    validate_command(ControlCommand(speed=0, length=0), LIMITS)
    validate_command(ControlCommand(speed=10, length=100), LIMITS)


@pytest.mark.parametrize(
    "command, field, value",
    [
        (ControlCommand(speed=-1, length=50), "speed", -1),
        (ControlCommand(speed=10.5, length=50), "speed", 10.5),
        (ControlCommand(speed=5, length=-0.1), "length", -0.1),
        (ControlCommand(speed=5, length=101), "length", 101),
    ],
)
def test_rejects_out_of_range_fields(command: ControlCommand, field: str, value: float) -> None:
    with pytest.raises(ValidationError) as info:
        validate_command(command, LIMITS)

    assert info.value.field == field
    assert info.value.value == value


def test_rejects_non_finite_values() -> None:
    with pytest.raises(ValidationError):
        validate_command(ControlCommand(speed=math.inf, length=1), LIMITS)


def test_unset_limits_reject_everything() -> None:
    with pytest.raises(ValidationError, match="not configured"):
        validate_command(ControlCommand(speed=0, length=0), None)

    with pytest.raises(ValidationError) as info:
        validate_command(
            ControlCommand(speed=1, length=1), DeviceLimits(max_speed=10, max_length=None)
        )
    assert info.value.field == "length"


def test_run_time_bounds() -> None:
    validate_command(ControlCommand(speed=1, length=1, time=5), LIMITS, max_run_seconds=5)

    with pytest.raises(ValidationError) as info:
        validate_command(ControlCommand(speed=1, length=1, time=0), LIMITS)
    assert info.value.field == "time"

    with pytest.raises(ValidationError):
        validate_command(
            ControlCommand(speed=1, length=1, time=61), LIMITS, max_run_seconds=60
        )
