"""Base class for broadcast channels."""

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class BaseChannel(ABC):
    """Publishes messages to subscribers of a topic."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    def enabled(self) -> bool:
        return True

    @abstractmethod
    async def publish(self, topic: str, message: dict[str, Any]) -> bool:
        """Publish a message. Returns True on success."""

    async def publish_safe(self, topic: str, message: dict[str, Any]) -> bool:
        """Publish, logging instead of raising on failure."""
        try:
            return await self.publish(topic, message)
        except Exception as e:
            logger.error(f"Failed to publish to {self.name} on {topic}: {e}")
            return False
