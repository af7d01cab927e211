"""Webhook adapter that forwards raw commands to an HTTP endpoint."""

from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from ..core import ConfigurationError, ControlCommand, RemoteCallError

LOGGER = logging.getLogger(__name__)


class WebhookClient:
    """Posts ``{speed, length}`` to a single configured URL."""

    def __init__(
        self, url: str, *, session: Optional[aiohttp.ClientSession] = None
    ) -> None:
        if not url:
            raise ConfigurationError("The webhook URL is not set")
        self.url = url
        self._session = session
        self._owns_session = session is None

    async def post_command(self, command: ControlCommand) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None)
            )
            self._owns_session = True

        data = {"speed": command.speed, "length": command.length}
        try:
            async with self._session.post(self.url, json=data) as response:
                if response.status >= 400:
                    detail = await response.text()
                    raise RemoteCallError(
                        f"Failed to send motor command: status {response.status}: {detail.strip()}",
                        endpoint=self.url,
                        status=response.status,
                    )
        except aiohttp.ClientError as exc:
            raise RemoteCallError(
                f"Error sending motor command: {exc}", endpoint=self.url
            ) from exc

        LOGGER.info("Motor command sent successfully")

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
