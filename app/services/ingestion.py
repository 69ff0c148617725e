"""Ingestion of alert batches into their discussion documents."""

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.config import AlertSyncConfig
from app.exceptions import CollaboratorWriteError
from app.models.document import SyncState
from app.services.broadcast import AlertCountPublisher
from app.services.sync import DocumentLocks, TopicSynchronizer
from app.services.template import render_alerts
from app.sources.alertmanager import AlertmanagerSource
from app.stores.base import BaseAlertStore, BaseDocumentStore
from app.utils import utcnow

logger = logging.getLogger(__name__)


class IngestionResult(BaseModel):
    document_id: str
    state: SyncState
    alerts: int = 0
    errors: list[str] = Field(default_factory=list)


class AlertIngestionService:
    """Runs one batch through normalize, persist, render, synchronize and publish.

    Passes for the same document are serialized with a per-document lock;
    passes for different documents run independently.
    """

    def __init__(
        self,
        documents: BaseDocumentStore,
        alerts: BaseAlertStore,
        publisher: AlertCountPublisher,
        config: AlertSyncConfig,
        source: AlertmanagerSource | None = None,
        logs_url: str | None = None,
        grafana_url: str | None = None,
        locks: DocumentLocks | None = None,
    ):
        self._documents = documents
        self._alerts = alerts
        self._publisher = publisher
        self._config = config
        self._source = source or AlertmanagerSource()
        self._logs_url = logs_url
        self._grafana_url = grafana_url
        self._locks = locks or DocumentLocks()
        self._group_locks = DocumentLocks()
        self._synchronizer = TopicSynchronizer(documents, alerts, config)

    async def ingest_payload(
        self, payload: dict[str, Any], now: datetime | None = None
    ) -> IngestionResult:
        """Resolve the payload's document from its group key, then ingest into it."""
        group_key = str(payload.get("groupKey") or payload.get("receiver") or "")
        # Two first batches for a group must not both open a document
        async with self._group_locks.hold(group_key):
            document, created = await self._documents.find_or_create(
                group_key, self._source.base_title(payload)
            )

            receiver = payload.get("receiver")
            if created and receiver:
                await self._documents.append_tag_silently(document.id, receiver)
                logger.info(f"Opened document {document.id} for group {group_key!r}")

        return await self.ingest(document.id, payload, now=now)

    async def ingest(
        self, document_id: str, payload: dict[str, Any], now: datetime | None = None
    ) -> IngestionResult:
        now = now or utcnow()
        result = self._source.parse_payload(
            payload, logs_url=self._logs_url, grafana_url=self._grafana_url
        )
        logger.info(
            f"Ingesting {len(result.alerts)} alert(s) into document {document_id} "
            f"({len(result.errors)} rejected)"
        )

        async with self._locks.hold(document_id):
            try:
                await self._alerts.upsert_alerts(document_id, result.alerts)
            except Exception as e:
                logger.error(f"Failed to store alerts for document {document_id}: {e}")
                raise CollaboratorWriteError("upsert_alerts", document_id) from e

            alerts = await self._alerts.alerts_for_document(document_id)
            body_template = render_alerts(alerts, self._config, now=now)

            document = await self._documents.get_document(document_id)
            if document.body_template != body_template:
                try:
                    await self._documents.set_body_template(document_id, body_template)
                except Exception as e:
                    logger.error(f"Failed to store body for document {document_id}: {e}")
                    raise CollaboratorWriteError("set_body_template", document_id) from e

            plan = await self._synchronizer.revise_document(
                document_id,
                high_priority=self._source.is_high_priority(payload, self._config),
                now=now,
            )

        await self._publisher.publish_counts()

        return IngestionResult(
            document_id=document_id,
            state=plan.state,
            alerts=len(result.alerts),
            errors=[str(e) for e in result.errors],
        )
