"""Publishes aggregate alert counts after each ingested batch."""

import logging

from app.channels.base import BaseChannel
from app.stores.base import BaseAlertStore

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "/alert-receiver"


class AlertCountPublisher:
    """Broadcasts how many documents are firing and open, across all groups."""

    def __init__(self, alerts: BaseAlertStore, channel: BaseChannel, topic: str = DEFAULT_TOPIC):
        self._alerts = alerts
        self._channel = channel
        self._topic = topic

    async def publish_counts(self) -> bool:
        message = {
            "firing_alerts_count": await self._alerts.count_firing(),
            "open_alerts_count": await self._alerts.count_open(),
        }
        success = await self._channel.publish_safe(self._topic, message)
        if success:
            logger.debug(f"Published alert counts {message}")
        return success
