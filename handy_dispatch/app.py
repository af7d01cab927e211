"""Main application entry-point for handy-dispatch."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Mapping, Optional

import aiohttp

from .config import DispatchSettings, HandyConfig, load_config
from .core import ConfigurationError, ControlCommand, DispatchOutcome
from .dispatcher import CommandDispatcher, DriverFactory
from .drivers import DeviceDriver, build_driver
from .logging import configure_logging
from .server import EventServer

LOGGER = logging.getLogger(__name__)


class HandyDispatchApp:
    """Owns the HTTP session and dispatcher shared by every entry point.

    Configuration is re-read from disk for each dispatch so edits made
    through the ``set`` command apply without a restart.
    """

    def __init__(
        self,
        config: Optional[HandyConfig] = None,
        *,
        driver_factory: Optional[DriverFactory] = None,
    ) -> None:
        self._config = config or load_config()
        self._driver_factory = driver_factory or build_driver
        self._session: Optional[aiohttp.ClientSession] = None
        self._dispatcher: Optional[CommandDispatcher] = None

    @property
    def config(self) -> HandyConfig:
        return self._config

    @property
    def dispatcher(self) -> CommandDispatcher:
        if self._dispatcher is None:
            raise RuntimeError("Application has not been opened")
        return self._dispatcher

    def settings(self) -> DispatchSettings:
        if self._config.path.exists():
            self._config = load_config(self._config.path)
        return self._config.snapshot()

    async def open(self) -> None:
        if self._dispatcher is not None:
            return
        self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=None))
        self._dispatcher = CommandDispatcher(
            driver_factory=self._driver_factory, session=self._session
        )

    async def aclose(self) -> None:
        if self._dispatcher is not None:
            await self._dispatcher.aclose()
            self._dispatcher = None
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HandyDispatchApp":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def handle_event(self, event: Mapping[str, Any]) -> Optional[DispatchOutcome]:
        return await self.dispatcher.handle_event(event, self.settings())

    async def dispatch_text(self, text: str) -> DispatchOutcome:
        return await self.dispatcher.dispatch_text(text, self.settings())

    async def dispatch_command(self, command: ControlCommand) -> DispatchOutcome:
        return await self.dispatcher.dispatch_command(command, self.settings())

    async def motor_command(
        self, speed: float, length: float, time: Optional[float] = None
    ) -> str:
        """Manual command: dispatch and describe the result for the operator."""

        outcome = await self.dispatch_command(
            ControlCommand(speed=speed, length=length, time=time)
        )
        if outcome.ok:
            return f"Motor command sent: speed={speed:g}, length={length:g}"
        return f"Motor command {outcome.status.value}: {outcome.error}"

    async def check_connected(self) -> bool:
        return await self._device_driver().is_connected()

    async def set_speed(self, percent: float) -> None:
        await self._device_driver().set_speed(percent)

    async def set_stroke_length(self, percent: float) -> None:
        await self._device_driver().set_stroke_length(percent)

    async def stop(self) -> None:
        await self._device_driver().stop()

    def _device_driver(self) -> DeviceDriver:
        driver = self._driver_factory(self.settings(), self._session)
        if not isinstance(driver, DeviceDriver):
            raise ConfigurationError("Direct device control requires the device backend")
        return driver

    # ------------------------------------------------------------------
    # Service lifecycle
    # ------------------------------------------------------------------
    async def serve(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Run the event server until ``stop_event`` is set or the task is cancelled."""

        stop_event = stop_event or asyncio.Event()
        server = EventServer(self, self._config.server.host, self._config.server.port)

        await self.open()
        await server.start()
        try:
            await stop_event.wait()
        finally:
            await server.stop()
            await self.aclose()

    @classmethod
    def start(cls, config: HandyConfig) -> None:
        configure_logging(
            config.logging.level,
            log_path=config.logging.path,
            log_network=config.logging.log_network,
        )
        app = cls(config)
        with contextlib.suppress(KeyboardInterrupt):
            asyncio.run(app.serve())
