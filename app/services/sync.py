"""Topic synchronizer - keeps a document's title, body and tags in line with its alerts."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from app.config import AlertSyncConfig
from app.exceptions import CollaboratorWriteError
from app.models.document import DocumentState, RevisionOptions, SyncPlan, SyncState
from app.services.tags import compute_tags
from app.services.template import first_post_body, generate_title, previous_document_link
from app.stores.base import BaseAlertStore, BaseDocumentStore, DocumentNotFoundError
from app.utils import utcnow

logger = logging.getLogger(__name__)


class DocumentLocks:
    """One asyncio.Lock per document id, dropped once nobody holds or awaits it.

    The read-diff-revise sequence is not atomic, so passes for the same
    document must not interleave.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, document_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(document_id, asyncio.Lock())
        self._users[document_id] = self._users.get(document_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[document_id] -= 1
            if not self._users[document_id]:
                del self._users[document_id]
                del self._locks[document_id]


def plan_sync(
    current: DocumentState,
    *,
    title: str,
    body: str,
    tags: list[str],
    is_firing: bool,
    now: datetime,
    config: AlertSyncConfig,
) -> SyncPlan:
    """Decide what a synchronization pass has to do, without doing it."""
    title_changed = current.title != title
    body_changed = current.body.strip() != body.strip()
    tags_changed = set(current.tags) != set(tags)

    if not (title_changed or body_changed or tags_changed):
        state = SyncState.UNCHANGED
    elif is_firing and title_changed and current.bumped_at < now - config.max_bump_rate:
        state = SyncState.REVISED_BUMPED
    else:
        state = SyncState.REVISED

    return SyncPlan(
        state=state,
        title=title,
        body=body,
        tags=tags,
        title_changed=title_changed,
        body_changed=body_changed,
        tags_changed=tags_changed,
    )


class TopicSynchronizer:
    """Recomputes a document from its alert records and applies the difference."""

    def __init__(
        self,
        documents: BaseDocumentStore,
        alerts: BaseAlertStore,
        config: AlertSyncConfig,
    ):
        self._documents = documents
        self._alerts = alerts
        self._config = config

    async def _previous_link(self, document: DocumentState) -> str:
        if document.previous_document_id is None:
            return ""
        try:
            previous = await self._documents.get_document(document.previous_document_id)
        except DocumentNotFoundError:
            return ""
        return previous_document_link(previous.id, previous.created_at, self._config)

    async def revise_document(
        self,
        document_id: str,
        high_priority: bool = False,
        now: datetime | None = None,
    ) -> SyncPlan:
        """Run one synchronization pass for a document.

        Idempotent: with unchanged alert records the second pass only asks
        live viewers to reload.

        Raises CollaboratorWriteError if a store write fails.
        """
        now = now or utcnow()
        document = await self._documents.get_document(document_id)

        firing_count = await self._alerts.firing_count_for_document(document_id)
        is_firing = firing_count > 0
        datacenters = await self._alerts.distinct_datacenters_for_document(document_id)

        title = generate_title(document.base_title, firing_count, self._config)
        body = first_post_body(document.body_template, await self._previous_link(document))
        tags = compute_tags(
            document.tags,
            datacenters,
            is_high_priority=high_priority,
            is_firing=is_firing,
            config=self._config,
        )

        plan = plan_sync(
            document,
            title=title,
            body=body,
            tags=tags,
            is_firing=is_firing,
            now=now,
            config=self._config,
        )

        if plan.state == SyncState.UNCHANGED:
            # Alert data changed even though the rendered content did not
            logger.debug(f"Document {document_id} unchanged, publishing reload")
            await self._documents.publish_reload(document_id)
            return plan

        bumped = plan.state == SyncState.REVISED_BUMPED

        # The title is only revised once the bump is stored
        if bumped:
            await self._write(
                "force_bump_timestamp",
                document_id,
                self._documents.force_bump_timestamp(document_id, now),
            )

        try:
            await self._write(
                "revise_document",
                document_id,
                self._documents.revise_document(
                    document_id,
                    title=plan.title,
                    body=plan.body,
                    tags=plan.tags,
                    options=RevisionOptions(),
                ),
            )
        except CollaboratorWriteError:
            if bumped:
                await self._restore_bump(document_id, document.bumped_at)
            raise

        logger.info(
            f"Revised document {document_id} (title={plan.title_changed}, "
            f"body={plan.body_changed}, tags={plan.tags_changed})"
        )

        if bumped:
            await self._documents.publish_latest_state(document_id)
            logger.info(f"Bumped document {document_id}")

        return plan

    async def _restore_bump(self, document_id: str, bumped_at: datetime) -> None:
        try:
            await self._documents.force_bump_timestamp(document_id, bumped_at)
        except Exception as e:
            logger.error(f"Could not restore bump timestamp of document {document_id}: {e}")

    async def _write(self, operation: str, document_id: str, call) -> None:
        try:
            await call
        except Exception as e:
            logger.error(f"{operation} failed for document {document_id}: {e}")
            raise CollaboratorWriteError(operation, document_id) from e
