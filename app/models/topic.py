"""Topic model - the discussion document tracking one alert group."""

from datetime import datetime
from typing import Any

from beanie import Document
from pydantic import Field
from pymongo import IndexModel

from app.utils import utcnow


class Topic(Document):
    """Discussion document kept in sync with the alerts of one group.

    One open topic exists per Alertmanager group key. When a topic is closed,
    the next batch for the same group opens a new one that links back to it.
    """

    group_key: str
    title: str = ""
    body: str = ""
    tags: list[str] = Field(default_factory=list)
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    closed: bool = False

    # Timestamps
    bumped_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "topics"
        use_state_management = True
        indexes = [
            IndexModel(
                [("group_key", 1)],
                name="one_open_topic_per_group",
                unique=True,
                partialFilterExpression={"closed": False},
            ),
            [("group_key", 1), ("created_at", -1)],
        ]
