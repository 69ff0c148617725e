"""MongoDB (Beanie) implementations of the document and alert-record stores."""

import logging
from datetime import datetime, timezone

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from app.channels.base import BaseChannel
from app.config import AlertSyncConfig
from app.models.alert import Alert, AlertStatus
from app.models.alert_record import AlertRecord
from app.models.document import DocumentState, RevisionOptions
from app.models.topic import Topic
from app.stores.base import BaseAlertStore, BaseDocumentStore, DocumentNotFoundError
from app.utils import utcnow

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # Mongo hands back naive UTC datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class MongoDocumentStore(BaseDocumentStore):
    """Topics stored in MongoDB; live notifications go out on a broadcast channel."""

    def __init__(self, config: AlertSyncConfig, channel: BaseChannel):
        self._config = config
        self._channel = channel

    async def _get_topic(self, document_id: str) -> Topic:
        try:
            topic = await Topic.get(PydanticObjectId(document_id))
        except InvalidId:
            topic = None
        if topic is None:
            raise DocumentNotFoundError(document_id)
        return topic

    def _to_state(self, topic: Topic) -> DocumentState:
        fields = topic.custom_fields
        previous = fields.get(self._config.previous_topic_field)
        return DocumentState(
            id=str(topic.id),
            title=topic.title,
            body=topic.body,
            tags=list(topic.tags),
            bumped_at=_aware(topic.bumped_at),
            created_at=_aware(topic.created_at),
            previous_document_id=str(previous) if previous is not None else None,
            body_template=fields.get(self._config.topic_body_field) or "",
            base_title=fields.get(self._config.base_title_field) or "",
        )

    async def get_document(self, document_id: str) -> DocumentState:
        return self._to_state(await self._get_topic(document_id))

    async def find_or_create(self, group_key: str, base_title: str) -> tuple[DocumentState, bool]:
        topic = await Topic.find_one(Topic.group_key == group_key, Topic.closed == False)  # noqa: E712
        if topic:
            return self._to_state(topic), False

        previous = (
            await Topic.find(Topic.group_key == group_key)
            .sort(-Topic.created_at)
            .first_or_none()
        )

        custom_fields = {self._config.base_title_field: base_title}
        if previous:
            custom_fields[self._config.previous_topic_field] = str(previous.id)

        topic = Topic(
            group_key=group_key,
            title=base_title or self._config.untitled_title,
            custom_fields=custom_fields,
        )
        try:
            await topic.insert()
        except DuplicateKeyError:
            # Another process opened the group's topic first
            existing = await Topic.find_one(Topic.group_key == group_key, Topic.closed == False)  # noqa: E712
            if existing is None:
                raise
            return self._to_state(existing), False

        logger.info(f"Created topic {topic.id} for group {group_key!r}")
        return self._to_state(topic), True

    async def set_body_template(self, document_id: str, body_template: str) -> None:
        topic = await self._get_topic(document_id)
        topic.custom_fields[self._config.topic_body_field] = body_template
        await topic.save()

    async def revise_document(
        self,
        document_id: str,
        *,
        title: str,
        body: str,
        tags: list[str],
        options: RevisionOptions,
    ) -> None:
        if options.validate_document and not title.strip():
            raise ValueError("Document title can't be blank")

        topic = await self._get_topic(document_id)
        topic.title = title
        topic.body = body
        topic.tags = list(dict.fromkeys(tags))
        topic.updated_at = utcnow()
        await topic.save()

        if not options.skip_revision:
            await self._channel.publish_safe(f"/topic/{document_id}", {"type": "revised"})

    async def append_tag_silently(self, document_id: str, tag: str) -> None:
        topic = await self._get_topic(document_id)
        if tag not in topic.tags:
            topic.tags.append(tag)
            await topic.save()

    async def force_bump_timestamp(self, document_id: str, bumped_at: datetime) -> None:
        topic = await self._get_topic(document_id)
        topic.bumped_at = bumped_at
        await topic.save()

    async def publish_reload(self, document_id: str) -> None:
        await self._channel.publish_safe(
            f"/topic/{document_id}", {"type": "revised", "reload_topic": True}
        )

    async def publish_latest_state(self, document_id: str) -> None:
        await self._channel.publish_safe("/latest", {"topic_id": document_id, "message_type": "latest"})


class MongoAlertStore(BaseAlertStore):
    """Alert records stored in MongoDB, one per alert identity and topic."""

    async def upsert_alerts(self, document_id: str, alerts: list[Alert]) -> None:
        for alert in alerts:
            record = await AlertRecord.find_one(
                AlertRecord.topic_id == document_id,
                AlertRecord.external_url == alert.external_url,
                AlertRecord.alert_name == alert.alert_name,
                AlertRecord.datacenter == alert.datacenter,
                AlertRecord.identifier == alert.identifier,
            )
            if record is None:
                await AlertRecord.from_alert(document_id, alert).insert()
                continue

            for field, value in alert.model_dump().items():
                setattr(record, field, value)
            record.updated_at = utcnow()
            await record.save()

    async def alerts_for_document(self, document_id: str) -> list[Alert]:
        records = await AlertRecord.find(AlertRecord.topic_id == document_id).sort(
            +AlertRecord.created_at
        ).to_list()
        return [record.to_alert() for record in records]

    async def firing_count_for_document(self, document_id: str) -> int:
        return await AlertRecord.find(
            AlertRecord.topic_id == document_id,
            AlertRecord.status == AlertStatus.FIRING.value,
        ).count()

    async def distinct_datacenters_for_document(self, document_id: str) -> list[str]:
        alerts = await self.alerts_for_document(document_id)
        return list(dict.fromkeys(a.datacenter for a in alerts if a.datacenter))

    async def count_firing(self) -> int:
        topic_ids = await AlertRecord.distinct(
            "topic_id", {"status": AlertStatus.FIRING.value}
        )
        return len(topic_ids)

    async def count_open(self) -> int:
        topic_ids = await AlertRecord.distinct(
            "topic_id", {"status": {"$ne": AlertStatus.RESOLVED.value}}
        )
        return len(topic_ids)
