"""Protocol definitions for driver backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Protocol

from .models import ControlCommand

if TYPE_CHECKING:
    from ..runs import RunHandle


class DeviceApi(Protocol):
    """Minimal contract for clients of the device REST API."""

    async def check_connected(self) -> bool: ...

    async def set_mode(self, mode: str) -> None: ...

    async def set_speed(self, percent: float) -> None: ...

    async def set_stroke_length(self, percent: float) -> None: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


class CommandDriver(Protocol):
    """Backend that turns a validated command into remote calls."""

    async def execute(
        self,
        command: ControlCommand,
        duration: float,
        *,
        before_start: Optional[Callable[[], None]] = None,
    ) -> Optional["RunHandle"]:
        """Carry out ``command``.

        ``before_start`` is invoked right before the device is started.
        Returns a handle when a stop has been scheduled, otherwise ``None``.

        Raises:
            ConnectivityError: If the device is not connected.
            RemoteCallError: If any remote call fails.
        """
        ...
