"""Configuration management for the alert receiver."""

from datetime import timedelta
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AlertSyncConfig(BaseModel):
    """Immutable constants shared by the rendering and synchronization code."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "http://localhost:5032"

    # Tags
    firing_tag: str = "firing"
    high_priority_tag: str = "high-priority"
    next_business_day_sla: str = "nbd"

    # Bump throttling
    max_bump_rate: timedelta = timedelta(minutes=5)

    # Custom field keys on the document
    previous_topic_field: str = "prom_alert_receiver_previous_topic"
    topic_body_field: str = "prom_alert_receiver_topic_body"
    base_title_field: str = "prom_alert_receiver_base_title"

    # Titles (Jinja2 templates)
    untitled_title: str = "Untitled alert"
    firing_title_template: str = "{{ base_title }} ({{ count }} firing)"
    not_firing_title_template: str = "{{ base_title }}"

    # Deep links
    graph_range_param: str = "range_input"
    graph_end_param: str = "end_input"
    graph_fragment: str = "g0"
    graph_range_padding: timedelta = timedelta(seconds=600)
    graph_end_padding: timedelta = timedelta(seconds=300)

    # Localized date token
    date_format: str = "YYYY-MM-DD HH:mm"
    displayed_timezone: str = "UTC"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5032)
    log_level: str = Field(default="INFO")
    base_url: str = Field(default="http://localhost:5032")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="alert_receiver")

    # Context attached to every ingested batch
    logs_url: str = Field(default="")
    grafana_url: str = Field(default="")

    # Broadcast of aggregate alert counts
    broadcast_url: str = Field(default="")  # Empty disables HTTP broadcast
    broadcast_topic: str = Field(default="/alert-receiver")
    broadcast_timeout: float = Field(default=10.0)  # seconds

    # Tags and bump throttling
    firing_tag: str = Field(default="firing")
    high_priority_tag: str = Field(default="high-priority")
    next_business_day_sla: str = Field(default="nbd")
    max_bump_rate_seconds: int = Field(default=300)

    # Custom field keys
    previous_topic_field: str = Field(default="prom_alert_receiver_previous_topic")
    topic_body_field: str = Field(default="prom_alert_receiver_topic_body")
    base_title_field: str = Field(default="prom_alert_receiver_base_title")

    # Titles
    untitled_title: str = Field(default="Untitled alert")
    firing_title_template: str = Field(default="{{ base_title }} ({{ count }} firing)")
    not_firing_title_template: str = Field(default="{{ base_title }}")

    def sync_config(self) -> AlertSyncConfig:
        return AlertSyncConfig(
            base_url=self.base_url.rstrip("/"),
            firing_tag=self.firing_tag,
            high_priority_tag=self.high_priority_tag,
            next_business_day_sla=self.next_business_day_sla,
            max_bump_rate=timedelta(seconds=self.max_bump_rate_seconds),
            previous_topic_field=self.previous_topic_field,
            topic_body_field=self.topic_body_field,
            base_title_field=self.base_title_field,
            untitled_title=self.untitled_title,
            firing_title_template=self.firing_title_template,
            not_firing_title_template=self.not_firing_title_template,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
