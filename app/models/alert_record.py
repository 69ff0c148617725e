"""Alert record model - persisted alert state per topic."""

from datetime import datetime
from typing import Annotated, Optional

from beanie import Document, Indexed
from pydantic import Field

from app.models.alert import Alert
from app.utils import utcnow


class AlertRecord(Document):
    """Last known state of one alert attached to a topic.

    Identity within a topic is (external_url, alert_name, datacenter, identifier).
    """

    topic_id: Annotated[str, Indexed(str)]  # Reference to Topic._id as string
    external_url: str = ""
    alert_name: str
    datacenter: Optional[str] = None
    identifier: str = ""
    status: str
    starts_at: str
    ends_at: Optional[str] = None
    graph_url: str = ""
    description: Optional[str] = None
    logs_url: Optional[str] = None
    grafana_url: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "alert_records"
        indexes = [
            "status",
            [("topic_id", 1), ("status", 1)],
            [("topic_id", 1), ("external_url", 1), ("alert_name", 1), ("datacenter", 1), ("identifier", 1)],
        ]

    @classmethod
    def from_alert(cls, topic_id: str, alert: Alert) -> "AlertRecord":
        return cls(topic_id=topic_id, **alert.model_dump())

    def to_alert(self) -> Alert:
        return Alert(
            external_url=self.external_url,
            alert_name=self.alert_name,
            datacenter=self.datacenter,
            identifier=self.identifier,
            status=self.status,
            starts_at=self.starts_at,
            ends_at=self.ends_at,
            graph_url=self.graph_url,
            description=self.description,
            logs_url=self.logs_url,
            grafana_url=self.grafana_url,
        )
