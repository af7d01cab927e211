"""Command dispatch pipeline: extract, validate, then drive the device."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional

import aiohttp

from .config import DispatchSettings
from .core import (
    CommandDriver,
    ConfigurationError,
    ConnectivityError,
    ControlCommand,
    DispatchOutcome,
    DispatchStatus,
    ParseError,
    RemoteCallError,
    ValidationError,
    decode_command,
    find_payload,
    validate_command,
)
from .drivers import build_driver
from .runs import RunHandle

LOGGER = logging.getLogger(__name__)

DriverFactory = Callable[[DispatchSettings, Optional[aiohttp.ClientSession]], CommandDriver]


class CommandDispatcher:
    """Turns generated text and manual commands into device runs.

    Dispatches are handled one at a time. A single slot tracks the stop
    timer of the most recent run; a new run cancels it just before starting
    so that an older timer never stops a newer run.
    """

    def __init__(
        self,
        *,
        driver_factory: Optional[DriverFactory] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._driver_factory = driver_factory or build_driver
        self._session = session
        self._lock = asyncio.Lock()
        self._active_run: Optional[RunHandle] = None

    @property
    def active_run(self) -> Optional[RunHandle]:
        if self._active_run is not None and not self._active_run.pending:
            return None
        return self._active_run

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    async def handle_event(
        self, event: Mapping[str, Any], settings: DispatchSettings
    ) -> Optional[DispatchOutcome]:
        """Dispatch the text of a message-processed event.

        User messages and events without text are ignored and yield ``None``.
        """

        message = _event_message(event)
        if message is None or message.get("is_user"):
            return None

        text = message.get("text")
        if not isinstance(text, str) or not text:
            return None

        try:
            return await self.dispatch_text(text, settings)
        except Exception:  # pragma: no cover - defensive logging
            LOGGER.exception("Unexpected failure while dispatching event")
            return None

    async def dispatch_text(
        self, text: str, settings: DispatchSettings
    ) -> DispatchOutcome:
        payload = find_payload(text)
        if payload is None:
            return DispatchOutcome(DispatchStatus.IGNORED)

        try:
            command = decode_command(payload)
        except ParseError as exc:
            LOGGER.warning("Dropping command: %s", exc)
            return DispatchOutcome(DispatchStatus.REJECTED, error=exc)

        return await self.dispatch_command(command, settings)

    async def dispatch_command(
        self, command: ControlCommand, settings: DispatchSettings
    ) -> DispatchOutcome:
        async with self._lock:
            return await self._dispatch(command, settings)

    async def aclose(self) -> None:
        """Stop any run whose timer is still pending."""

        async with self._lock:
            handle = self._active_run
            self._active_run = None
        if handle is not None and handle.pending:
            LOGGER.info("Stopping run %d before shutdown", handle.run_id)
            await handle.stop_now()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _dispatch(
        self, command: ControlCommand, settings: DispatchSettings
    ) -> DispatchOutcome:
        try:
            validate_command(
                command, settings.limits, max_run_seconds=settings.max_run_seconds
            )
        except ValidationError as exc:
            LOGGER.warning("Rejected command %s: %s", command.as_payload(), exc)
            return DispatchOutcome(DispatchStatus.REJECTED, command=command, error=exc)

        try:
            driver = self._driver_factory(settings, self._session)
        except ConfigurationError as exc:
            LOGGER.error("%s", exc)
            return DispatchOutcome(DispatchStatus.ABORTED, command=command, error=exc)

        duration = (
            float(command.time)
            if command.time is not None
            else settings.default_run_seconds
        )

        try:
            handle = await driver.execute(
                command, duration, before_start=self._release_active_run
            )
        except ConnectivityError as exc:
            LOGGER.error("%s", exc)
            return DispatchOutcome(DispatchStatus.ABORTED, command=command, error=exc)
        except ValidationError as exc:
            LOGGER.warning("Device rejected command %s: %s", command.as_payload(), exc)
            return DispatchOutcome(DispatchStatus.REJECTED, command=command, error=exc)
        except RemoteCallError as exc:
            LOGGER.error("Remote call failed, abandoning run: %s", exc)
            return DispatchOutcome(DispatchStatus.FAILED, command=command, error=exc)

        if handle is None:
            return DispatchOutcome(DispatchStatus.SENT, command=command)

        self._active_run = handle
        return DispatchOutcome(DispatchStatus.STARTED, command=command, handle=handle)

    def _release_active_run(self) -> None:
        handle = self._active_run
        self._active_run = None
        if handle is not None and handle.cancel():
            LOGGER.info("Run %d superseded before its stop fired", handle.run_id)


def _event_message(event: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    if not isinstance(event, Mapping):
        return None
    # Browser-style CustomEvent payloads nest the message under "detail"
    detail = event.get("detail")
    container = detail if isinstance(detail, Mapping) else event
    message = container.get("message")
    return message if isinstance(message, Mapping) else None
