"""Device API adapter for the Handy v2 REST interface."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import aiohttp

from .. import constants
from ..config import ConnectionConfig
from ..core import ConfigurationError, InvalidModeError, RemoteCallError, ValidationError

LOGGER = logging.getLogger(__name__)

MODES: Dict[str, int] = {
    "HAMP": 0,
    "HSSP": 1,
    "HDSP": 2,
    "MAINTENANCE": 3,
    "HBSP": 4,
}


def _check_percent(field: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            f"{field.capitalize()} must be a number, got {value!r}",
            field=field,
            value=value,
        )
    if not 0 <= value <= 100:
        raise ValidationError(
            f"{field.capitalize()} must be between 0 and 100, got {value}",
            field=field,
            value=value,
        )


class HandyClient:
    """Non-blocking client for the device's mode, motion and slide endpoints."""

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        if not config.connection_key:
            raise ConfigurationError("The device connection key is not set")

        self.config = config
        self._base_url = config.base_url.rstrip("/")
        self._headers = {constants.CONNECTION_KEY_HEADER: config.connection_key}
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def check_connected(self) -> bool:
        """Return whether the device is online for this connection key."""

        payload = await self._request("GET", "/connected")
        return payload.get("connected") is True

    async def set_mode(self, mode: str) -> None:
        """Switch the device into ``mode``.

        Raises:
            InvalidModeError: If ``mode`` is not a known mode name. No request
                is made in that case.
        """

        if not isinstance(mode, str) or mode.strip().upper() not in MODES:
            raise InvalidModeError(mode)
        key = mode.strip().upper()
        payload = await self._request("PUT", "/mode", {"mode": MODES[key]})
        LOGGER.debug("Set mode %s response: %s", key, payload)

    async def set_speed(self, percent: float) -> None:
        """Set the alternating-motion velocity as a percentage (0-100)."""

        _check_percent("velocity", percent)
        payload = await self._request("PUT", "/hamp/velocity", {"velocity": percent})
        LOGGER.debug("Set speed response: %s", payload)

    async def set_stroke_length(self, percent: float) -> None:
        """Set the slide position as a percentage (0-100)."""

        _check_percent("position", percent)
        payload = await self._request("PUT", "/slide", {"position": percent})
        LOGGER.debug("Set stroke length response: %s", payload)

    async def start(self) -> None:
        payload = await self._request("PUT", "/hamp/start")
        LOGGER.debug("Start response: %s", payload)

    async def stop(self) -> None:
        payload = await self._request("PUT", "/hamp/stop")
        LOGGER.debug("Stop response: %s", payload)

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        session = await self._ensure_session()
        url = f"{self._base_url}{endpoint}"

        try:
            async with session.request(
                method, url, json=body, headers=self._headers
            ) as response:
                if response.status >= 400:
                    detail = await response.text()
                    raise RemoteCallError(
                        f"{method} {endpoint} failed with status {response.status}: {detail.strip()}",
                        endpoint=endpoint,
                        status=response.status,
                    )
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    payload = None
        except aiohttp.ClientError as exc:
            raise RemoteCallError(
                f"{method} {endpoint} failed: {exc}", endpoint=endpoint
            ) from exc

        return payload if isinstance(payload, dict) else {}
