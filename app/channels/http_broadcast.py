"""Broadcast channel posting messages to an HTTP message bus endpoint."""

import logging
from typing import Any

import httpx

from app.channels.base import BaseChannel

logger = logging.getLogger(__name__)


class HttpBroadcastChannel(BaseChannel):
    """Posts {"channel": topic, "data": message} to a message bus URL."""

    def __init__(self, url: str, timeout: float = 10.0):
        self._url = url
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "http-broadcast"

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    async def publish(self, topic: str, message: dict[str, Any]) -> bool:
        if not self.enabled:
            logger.debug(f"Broadcast disabled, dropping message for {topic}")
            return False

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                self._url,
                headers={"Content-Type": "application/json"},
                json={"channel": topic, "data": message},
            )
            response.raise_for_status()

        logger.debug(f"Published to {topic}")
        return True
