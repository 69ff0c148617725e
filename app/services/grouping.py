"""Partition alerts by status and by (datacenter, source)."""

from collections.abc import Callable, Iterable

from app.models.alert import Alert, AlertStatus

GroupKey = tuple[str | None, str]
GroupedAlerts = dict[AlertStatus, dict[GroupKey, list[Alert]]]

# Evaluated top to bottom, first match wins.
STATUS_PRECEDENCE: tuple[tuple[AlertStatus, Callable[[Alert], bool]], ...] = (
    (AlertStatus.FIRING, lambda alert: alert.status == AlertStatus.FIRING),
    (AlertStatus.RESOLVED, lambda alert: alert.status == AlertStatus.RESOLVED),
    (AlertStatus.STALE, lambda alert: alert.status == AlertStatus.STALE),
    (AlertStatus.SUPPRESSED, lambda alert: alert.status == AlertStatus.SUPPRESSED),
)


def classify(alert: Alert) -> AlertStatus | None:
    """Section an alert belongs to, or None for statuses that are never shown."""
    for status, matches in STATUS_PRECEDENCE:
        if matches(alert):
            return status
    return None


def group_by_source(alerts: Iterable[Alert]) -> dict[GroupKey, list[Alert]]:
    groups: dict[GroupKey, list[Alert]] = {}
    for alert in alerts:
        groups.setdefault(alert.group_key, []).append(alert)
    return groups


def group_alerts(alerts: Iterable[Alert]) -> GroupedAlerts:
    """Group alerts by status, then by (datacenter, external_url).

    Keys keep the order in which they first appear; alerts keep input order.
    """
    by_status: dict[AlertStatus, list[Alert]] = {}
    for alert in alerts:
        status = classify(alert)
        if status is None:
            continue
        by_status.setdefault(status, []).append(alert)

    return {status: group_by_source(members) for status, members in by_status.items()}
