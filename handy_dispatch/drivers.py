"""Driver backends that execute validated commands against remote endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import aiohttp

from .adapters import HandyClient, WebhookClient
from .config import BACKEND_WEBHOOK, DispatchSettings
from .core import CommandDriver, ConnectivityError, ControlCommand, DeviceApi, RemoteCallError
from .runs import RunHandle

LOGGER = logging.getLogger(__name__)

BeforeStart = Callable[[], None]


class DeviceDriver:
    """Runs the connect, mode, speed, start and timed-stop sequence."""

    run_mode = "HAMP"

    def __init__(self, api: DeviceApi) -> None:
        self._api = api

    async def execute(
        self,
        command: ControlCommand,
        duration: float,
        *,
        before_start: Optional[BeforeStart] = None,
    ) -> Optional[RunHandle]:
        if not await self._api.check_connected():
            raise ConnectivityError("Device is not connected. Check your connection key.")
        LOGGER.info("Device is connected")

        await self._api.set_mode(self.run_mode)
        await self._api.set_speed(command.speed)

        if before_start is not None:
            before_start()

        started_at = asyncio.get_running_loop().time()
        try:
            await self._api.start()
        except RemoteCallError:
            # any earlier run's stop is already cancelled; leave the device halted
            await self._stop_after_failed_start()
            raise
        handle = RunHandle.schedule(self._api.stop, started_at, duration)
        LOGGER.info(
            "Run %d started at speed %s; stopping in %.1fs",
            handle.run_id,
            command.speed,
            duration,
        )
        return handle

    async def is_connected(self) -> bool:
        return await self._api.check_connected()

    async def set_speed(self, percent: float) -> None:
        await self._api.set_speed(percent)

    async def set_stroke_length(self, percent: float) -> None:
        await self._api.set_stroke_length(percent)

    async def stop(self) -> None:
        await self._api.stop()

    async def _stop_after_failed_start(self) -> None:
        try:
            await self._api.stop()
        except RemoteCallError as exc:
            LOGGER.error("Stop after failed start also failed: %s", exc)


class WebhookDriver:
    """Fire-and-forget backend: posts the raw command, schedules nothing."""

    def __init__(self, client: WebhookClient) -> None:
        self._client = client

    async def execute(
        self,
        command: ControlCommand,
        duration: float,
        *,
        before_start: Optional[BeforeStart] = None,
    ) -> Optional[RunHandle]:
        await self._client.post_command(command)
        return None


def build_driver(
    settings: DispatchSettings, session: Optional[aiohttp.ClientSession] = None
) -> CommandDriver:
    """Create the backend selected by ``settings``.

    Raises:
        ConfigurationError: If the selected backend's endpoint or key is unset.
    """

    if settings.backend == BACKEND_WEBHOOK:
        return WebhookDriver(
            WebhookClient(settings.connection.webhook_target, session=session)
        )
    return DeviceDriver(HandyClient(settings.connection, session=session))
