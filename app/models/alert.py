"""Canonical alert model shared by every stage of the pipeline."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.exceptions import MalformedAlertError


class AlertStatus(str, Enum):
    FIRING = "firing"
    RESOLVED = "resolved"
    SUPPRESSED = "suppressed"
    STALE = "stale"


class Alert(BaseModel):
    """A single normalized alert.

    Status is kept as a plain string: values outside AlertStatus are carried
    through and simply never rendered. Timestamps stay as the ISO strings the
    source sent; they are parsed lazily where they are used.
    """

    model_config = ConfigDict(frozen=True)

    external_url: str = ""
    alert_name: str
    datacenter: str | None = None
    identifier: str = ""
    status: str
    starts_at: str
    ends_at: str | None = None
    graph_url: str = ""
    description: str | None = None
    logs_url: str | None = None
    grafana_url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _ends_at_only_when_resolved(cls, data: Any) -> Any:
        # ends_at is meaningful only for resolved alerts, whatever upstream says
        if isinstance(data, dict) and data.get("status") != AlertStatus.RESOLVED.value:
            data = {**data, "ends_at": None}
        return data

    @property
    def is_firing(self) -> bool:
        return self.status == AlertStatus.FIRING

    @property
    def is_resolved(self) -> bool:
        return self.status == AlertStatus.RESOLVED

    @property
    def label(self) -> str:
        return self.identifier or self.alert_name

    @property
    def group_key(self) -> tuple[str | None, str]:
        return (self.datacenter, self.external_url)


class AlertContext(BaseModel):
    """Context accompanying a batch of raw alerts."""

    external_url: str = ""
    logs_url: str | None = None
    grafana_url: str | None = None


class NormalizationResult(BaseModel):
    """Alerts normalized from one batch, plus the ones that were rejected."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    alerts: list[Alert] = Field(default_factory=list)
    errors: list[MalformedAlertError] = Field(default_factory=list)

    @property
    def firing_alerts(self) -> list[Alert]:
        return [a for a in self.alerts if a.is_firing]

    @property
    def datacenters(self) -> list[str]:
        seen: list[str] = []
        for alert in self.alerts:
            if alert.datacenter and alert.datacenter not in seen:
                seen.append(alert.datacenter)
        return seen
