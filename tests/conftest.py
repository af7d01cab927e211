import asyncio
from typing import Any, Callable, Optional

import pytest

from handy_dispatch.config import ConnectionConfig, DeviceLimits, DispatchSettings
from handy_dispatch.core import RemoteCallError


class FakeDeviceApi:
    """Records device calls in order; optionally fails one of them."""

    def __init__(self, *, connected: bool = True, fail_on: Optional[str] = None) -> None:
        self.connected = connected
        self.fail_on = fail_on
        self.calls: list[tuple[Any, ...]] = []
        self.started_at: list[float] = []
        self.stopped_at: list[float] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise RemoteCallError(f"{name} failed", endpoint=name, status=500)

    async def check_connected(self) -> bool:
        self._record("check_connected")
        return self.connected

    async def set_mode(self, mode: str) -> None:
        self._record("set_mode", mode)

    async def set_speed(self, percent: float) -> None:
        self._record("set_speed", percent)

    async def set_stroke_length(self, percent: float) -> None:
        self._record("set_stroke_length", percent)

    async def start(self) -> None:
        self.started_at.append(asyncio.get_running_loop().time())
        self._record("start")

    async def stop(self) -> None:
        self.stopped_at.append(asyncio.get_running_loop().time())
        self._record("stop")

    @property
    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_api() -> FakeDeviceApi:
    return FakeDeviceApi()


@pytest.fixture
def make_settings() -> Callable[..., DispatchSettings]:
    def factory(
        *,
        connection_key: str = "conn-key",
        base_url: str = "http://127.0.0.1:9/api/handy/v2",
        webhook_url: str = "",
        max_speed: Optional[float] = 10,
        max_length: Optional[float] = 100,
        backend: str = "device",
        run_seconds: float = 0.05,
        max_run_seconds: Optional[float] = 60,
    ) -> DispatchSettings:
        return DispatchSettings(
            connection=ConnectionConfig(
                connection_key=connection_key,
                base_url=base_url,
                webhook_url=webhook_url,
            ),
            limits=DeviceLimits(max_speed=max_speed, max_length=max_length),
            backend=backend,
            default_run_seconds=run_seconds,
            max_run_seconds=max_run_seconds,
        )

    return factory


@pytest.fixture
def make_api() -> Callable[..., FakeDeviceApi]:
    return FakeDeviceApi
