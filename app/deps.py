"""FastAPI dependencies wiring the ingestion pipeline to its collaborators."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.channels.http_broadcast import HttpBroadcastChannel
from app.config import get_settings
from app.services.broadcast import AlertCountPublisher
from app.services.ingestion import AlertIngestionService
from app.stores.mongo import MongoAlertStore, MongoDocumentStore


@lru_cache
def get_ingestion_service() -> AlertIngestionService:
    """Process-wide ingestion service, so per-document locks are shared."""
    settings = get_settings()
    config = settings.sync_config()
    channel = HttpBroadcastChannel(settings.broadcast_url, timeout=settings.broadcast_timeout)
    alerts = MongoAlertStore()

    return AlertIngestionService(
        documents=MongoDocumentStore(config, channel),
        alerts=alerts,
        publisher=AlertCountPublisher(alerts, channel, topic=settings.broadcast_topic),
        config=config,
        logs_url=settings.logs_url,
        grafana_url=settings.grafana_url,
    )


# Type alias for cleaner route signatures
IngestionService = Annotated[AlertIngestionService, Depends(get_ingestion_service)]
