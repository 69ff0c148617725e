"""Prometheus Alertmanager webhook parser."""

import logging
from typing import Any

from pydantic import ValidationError

from app.config import AlertSyncConfig
from app.exceptions import MalformedAlertError
from app.models.alert import Alert, AlertContext, AlertStatus, NormalizationResult
from app.sources.base import BaseSource

logger = logging.getLogger(__name__)

# Producers disagree on the name of the firing state
_STATUS_ALIASES = {"active": AlertStatus.FIRING.value}


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def normalize_status(status: Any) -> Any:
    """Map a raw status (string or {"state": ...} object) to a canonical value.

    Values other than "active" pass through unchanged, including ones the
    grouping stage does not know about.
    """
    if isinstance(status, dict):
        status = status.get("state")
    return _STATUS_ALIASES.get(status, status) if isinstance(status, str) else status


class AlertmanagerSource(BaseSource):
    """Parser for Alertmanager webhook payloads and API alert listings."""

    @property
    def name(self) -> str:
        return "alertmanager"

    def parse(
        self, raw_alerts: list[dict[str, Any]], context: AlertContext
    ) -> NormalizationResult:
        result = NormalizationResult()

        for index, raw_alert in enumerate(raw_alerts):
            try:
                result.alerts.append(self.parse_alert(raw_alert, context, index=index))
            except MalformedAlertError as e:
                logger.warning(f"Skipping alert: {e}")
                result.errors.append(e)

        return result

    def parse_payload(
        self,
        payload: dict[str, Any],
        logs_url: str | None = None,
        grafana_url: str | None = None,
    ) -> NormalizationResult:
        """Normalize every alert of a webhook payload."""
        context = AlertContext(
            external_url=payload.get("externalURL") or "",
            logs_url=logs_url or None,
            grafana_url=grafana_url or None,
        )
        return self.parse(payload.get("alerts") or [], context)

    def parse_alert(
        self, raw_alert: dict[str, Any], context: AlertContext, index: int | None = None
    ) -> Alert:
        """Normalize one raw alert. Raises MalformedAlertError."""
        if not isinstance(raw_alert, dict):
            raise MalformedAlertError("alert", index)

        labels = raw_alert.get("labels")
        if not isinstance(labels, dict) or labels.get("alertname") is None:
            raise MalformedAlertError("labels.alertname", index)
        if raw_alert.get("status") is None:
            raise MalformedAlertError("status", index)
        if raw_alert.get("startsAt") is None:
            raise MalformedAlertError("startsAt", index)

        annotations = raw_alert.get("annotations") or {}
        if not isinstance(annotations, dict):
            raise MalformedAlertError("annotations", index)
        status = normalize_status(raw_alert["status"])
        if not isinstance(status, str):
            raise MalformedAlertError("status.state", index)

        alert_data: dict[str, Any] = {
            "external_url": context.external_url,
            "alert_name": labels["alertname"],
            "datacenter": labels.get("datacenter"),
            "identifier": labels.get("id") or "",
            "status": status,
            "starts_at": raw_alert["startsAt"],
            "ends_at": None if status == AlertStatus.FIRING else raw_alert.get("endsAt"),
            "graph_url": raw_alert.get("generatorURL") or "",
            "description": annotations.get("description"),
            "logs_url": context.logs_url,
        }

        dashboard_path = annotations.get("grafana_dashboard_path")
        if dashboard_path:
            alert_data["grafana_url"] = f"{context.grafana_url or ''}{dashboard_path}"

        # The Alert model clears ends_at for anything not exactly resolved
        try:
            return Alert(**alert_data)
        except ValidationError as e:
            field = ".".join(str(part) for part in e.errors()[0]["loc"])
            raise MalformedAlertError(field, index) from e

    @staticmethod
    def is_high_priority(payload: dict[str, Any], config: AlertSyncConfig) -> bool:
        """Whether the batch asks for a response faster than next business day."""
        common_labels = _mapping(payload.get("commonLabels"))
        response_sla = common_labels.get("response_sla")
        return bool(response_sla) and response_sla != config.next_business_day_sla

    @staticmethod
    def base_title(payload: dict[str, Any]) -> str:
        """Title prefix for a newly opened document."""
        annotations = _mapping(payload.get("commonAnnotations"))
        labels = _mapping(payload.get("commonLabels"))
        return annotations.get("topic_title") or labels.get("alertname") or ""
