"""Domain models for control commands and dispatch results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from .errors import DispatchError

if TYPE_CHECKING:
    from ..runs import RunHandle

Number = Union[int, float]


@dataclass(frozen=True, slots=True)
class ControlCommand:
    speed: Number
    length: Number
    time: Optional[Number] = None

    def as_payload(self) -> Dict[str, Number]:
        payload: Dict[str, Number] = {"speed": self.speed, "length": self.length}
        if self.time is not None:
            payload["time"] = self.time
        return payload


class DispatchStatus(str, Enum):
    IGNORED = "ignored"
    REJECTED = "rejected"
    ABORTED = "aborted"
    FAILED = "failed"
    STARTED = "started"
    SENT = "sent"


@dataclass(slots=True)
class DispatchOutcome:
    status: DispatchStatus
    command: Optional[ControlCommand] = None
    error: Optional[DispatchError] = None
    handle: Optional["RunHandle"] = None

    @property
    def ok(self) -> bool:
        return self.status in (DispatchStatus.STARTED, DispatchStatus.SENT)

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"status": self.status.value}
        if self.command is not None:
            payload["command"] = self.command.as_payload()
        if self.error is not None:
            payload["error"] = {"code": self.error.code, "message": str(self.error)}
            field = getattr(self.error, "field", None)
            if field is not None:
                payload["error"]["field"] = field
                payload["error"]["value"] = getattr(self.error, "value", None)
        if self.handle is not None:
            payload["runId"] = self.handle.run_id
            payload["stopInSeconds"] = round(self.handle.remaining_seconds, 3)
        return payload
