"""Shared fixtures and in-memory collaborators."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from app.channels.base import BaseChannel
from app.config import AlertSyncConfig
from app.models.alert import Alert
from app.models.document import DocumentState, RevisionOptions
from app.stores.base import BaseAlertStore, BaseDocumentStore, DocumentNotFoundError

NOW = datetime(2024, 1, 1, 1, 0, 0, tzinfo=timezone.utc)


class FakeDocumentStore(BaseDocumentStore):
    """Documents kept in a dict, with every call recorded."""

    def __init__(self) -> None:
        self.documents: dict[str, DocumentState] = {}
        self.group_keys: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.revisions: list[dict[str, Any]] = []
        self.fail_revise = False
        self.fail_bumps = 0

    def add(self, document: DocumentState, group_key: str | None = None) -> DocumentState:
        self.documents[document.id] = document
        if group_key is not None:
            self.group_keys[group_key] = document.id
        return document

    @property
    def writes(self) -> list[str]:
        return [
            op
            for op, _ in self.calls
            if op in ("set_body_template", "revise_document", "append_tag_silently", "force_bump_timestamp")
        ]

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)

    async def get_document(self, document_id: str) -> DocumentState:
        if document_id not in self.documents:
            raise DocumentNotFoundError(document_id)
        return self.documents[document_id].model_copy(deep=True)

    async def find_or_create(self, group_key: str, base_title: str) -> tuple[DocumentState, bool]:
        if group_key in self.group_keys:
            return await self.get_document(self.group_keys[group_key]), False
        # Suspend between lookup and insert, as a networked store does
        await asyncio.sleep(0)
        document = make_document(str(len(self.documents) + 1), base_title=base_title)
        self.add(document, group_key)
        return document, True

    async def set_body_template(self, document_id: str, body_template: str) -> None:
        self.calls.append(("set_body_template", document_id))
        self.documents[document_id].body_template = body_template

    async def revise_document(
        self,
        document_id: str,
        *,
        title: str,
        body: str,
        tags: list[str],
        options: RevisionOptions,
    ) -> None:
        self.calls.append(("revise_document", document_id))
        if self.fail_revise:
            raise ConnectionError("store unavailable")
        document = self.documents[document_id]
        document.title = title
        document.body = body
        document.tags = list(tags)
        self.revisions.append({"title": title, "body": body, "tags": list(tags), "options": options})

    async def append_tag_silently(self, document_id: str, tag: str) -> None:
        self.calls.append(("append_tag_silently", document_id))
        tags = self.documents[document_id].tags
        if tag not in tags:
            tags.append(tag)

    async def force_bump_timestamp(self, document_id: str, bumped_at: datetime) -> None:
        self.calls.append(("force_bump_timestamp", document_id))
        if self.fail_bumps:
            self.fail_bumps -= 1
            raise ConnectionError("store unavailable")
        self.documents[document_id].bumped_at = bumped_at

    async def publish_reload(self, document_id: str) -> None:
        self.calls.append(("publish_reload", document_id))

    async def publish_latest_state(self, document_id: str) -> None:
        self.calls.append(("publish_latest_state", document_id))


class FakeAlertStore(BaseAlertStore):
    """Alert records per document, keyed like the Mongo store."""

    def __init__(self) -> None:
        self.records: dict[str, dict[tuple, Alert]] = {}

    async def upsert_alerts(self, document_id: str, alerts: list[Alert]) -> None:
        records = self.records.setdefault(document_id, {})
        for alert in alerts:
            key = (alert.external_url, alert.alert_name, alert.datacenter, alert.identifier)
            records[key] = alert

    async def alerts_for_document(self, document_id: str) -> list[Alert]:
        return list(self.records.get(document_id, {}).values())

    async def firing_count_for_document(self, document_id: str) -> int:
        return sum(1 for a in await self.alerts_for_document(document_id) if a.is_firing)

    async def distinct_datacenters_for_document(self, document_id: str) -> list[str]:
        alerts = await self.alerts_for_document(document_id)
        return list(dict.fromkeys(a.datacenter for a in alerts if a.datacenter))

    async def count_firing(self) -> int:
        return sum(
            1 for records in self.records.values() if any(a.is_firing for a in records.values())
        )

    async def count_open(self) -> int:
        return sum(
            1
            for records in self.records.values()
            if any(not a.is_resolved for a in records.values())
        )


class RecordingChannel(BaseChannel):
    def __init__(self, fail: bool = False) -> None:
        self.messages: list[tuple[str, dict[str, Any]]] = []
        self.fail = fail

    @property
    def name(self) -> str:
        return "recording"

    async def publish(self, topic: str, message: dict[str, Any]) -> bool:
        if self.fail:
            raise ConnectionError("bus down")
        self.messages.append((topic, message))
        return True


def make_document(document_id: str = "1", **overrides: Any) -> DocumentState:
    data: dict[str, Any] = {
        "id": document_id,
        "bumped_at": NOW - timedelta(hours=1),
        "created_at": NOW - timedelta(days=1),
    }
    data.update(overrides)
    return DocumentState(**data)


def make_alert(**overrides: Any) -> Alert:
    data: dict[str, Any] = {
        "external_url": "https://alerts.example.com",
        "alert_name": "HighLatency",
        "datacenter": "dc1",
        "identifier": "api-1",
        "status": "firing",
        "starts_at": "2024-01-01T00:00:00Z",
        "graph_url": "https://prometheus.example.com/graph?g0.expr=up&g0.tab=0",
    }
    data.update(overrides)
    return Alert(**data)


def raw_alert(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "status": "firing",
        "labels": {"alertname": "HighLatency", "datacenter": "dc1", "id": "api-1"},
        "annotations": {"description": "p99 above 2s"},
        "startsAt": "2024-01-01T00:00:00Z",
        "endsAt": "0001-01-01T00:00:00Z",
        "generatorURL": "https://prometheus.example.com/graph?g0.expr=up&g0.tab=0",
    }
    data.update(overrides)
    return data


def webhook_payload(*alerts: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "version": "4",
        "groupKey": '{}:{alertname="HighLatency"}',
        "receiver": "ops",
        "status": "firing",
        "externalURL": "https://alerts.example.com",
        "commonLabels": {"alertname": "HighLatency"},
        "commonAnnotations": {"topic_title": "API latency"},
        "alerts": list(alerts) or [raw_alert()],
    }
    data.update(overrides)
    return data


@pytest.fixture
def config() -> AlertSyncConfig:
    return AlertSyncConfig(base_url="https://forum.example.com")


@pytest.fixture
def documents() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def alert_store() -> FakeAlertStore:
    return FakeAlertStore()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()
