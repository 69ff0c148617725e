"""Data models for the alert receiver."""

from app.models.alert import Alert, AlertContext, AlertStatus, NormalizationResult
from app.models.alert_record import AlertRecord
from app.models.document import DocumentState, RevisionOptions, SyncPlan, SyncState
from app.models.topic import Topic

__all__ = [
    "Alert",
    "AlertContext",
    "AlertStatus",
    "NormalizationResult",
    "AlertRecord",
    "DocumentState",
    "RevisionOptions",
    "SyncPlan",
    "SyncState",
    "Topic",
]
