"""HTTP endpoint receiving message events and manual commands from the host."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Optional

from aiohttp import web

from .core import ParseError, command_from_mapping

if TYPE_CHECKING:
    from .app import HandyDispatchApp

LOGGER = logging.getLogger(__name__)


class EventServer:
    """Minimal HTTP server exposing ``/events`` and ``/motor``."""

    def __init__(self, app: "HandyDispatchApp", host: str, port: int) -> None:
        self._app = app
        self._host = host
        self._port = port
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    def build_application(self) -> web.Application:
        application = web.Application()
        application.router.add_post("/events", self._handle_event)
        application.router.add_post("/motor", self._handle_motor)
        return application

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_application())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        LOGGER.info("Event endpoint listening on http://%s:%s/events", self._host, self._port)

    async def stop(self) -> None:
        with contextlib.suppress(Exception):
            if self._site is not None:
                await self._site.stop()
        if self._runner is not None:
            await self._runner.cleanup()
        self._site = None
        self._runner = None

    async def _handle_event(self, request: web.Request) -> web.Response:
        try:
            event = await request.json()
        except ValueError:
            return web.json_response({"error": "Request body must be JSON"}, status=400)

        outcome = await self._app.handle_event(event)
        if outcome is None:
            return web.json_response({"status": "ignored"})
        return web.json_response(outcome.as_dict())

    async def _handle_motor(self, request: web.Request) -> web.Response:
        try:
            body = await request.json()
            command = command_from_mapping(body)
        except ValueError:
            return web.json_response({"error": "Request body must be JSON"}, status=400)
        except ParseError as exc:
            return web.json_response({"error": str(exc)}, status=400)

        outcome = await self._app.dispatch_command(command)
        return web.json_response(outcome.as_dict(), status=200 if outcome.ok else 422)
