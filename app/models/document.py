"""Document state as seen through the document store."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class DocumentState(BaseModel):
    """Snapshot of a discussion document read before a synchronization pass."""

    id: str
    title: str = ""
    body: str = ""
    tags: list[str] = Field(default_factory=list)
    bumped_at: datetime
    created_at: datetime

    # Custom fields
    previous_document_id: str | None = None
    body_template: str = ""
    base_title: str = ""


class RevisionOptions(BaseModel):
    """How the document store should apply a system-authored revision."""

    skip_revision: bool = True  # No revision-history entry
    skip_validations: bool = True  # Post validations bypassed
    validate_document: bool = True  # Document-level validation still applied


class SyncState(str, Enum):
    UNCHANGED = "unchanged"
    REVISED = "revised"
    REVISED_BUMPED = "revised+bumped"


class SyncPlan(BaseModel):
    """Outcome of diffing computed content against the current document."""

    state: SyncState
    title: str
    body: str
    tags: list[str]
    title_changed: bool = False
    body_changed: bool = False
    tags_changed: bool = False

    @property
    def changed(self) -> bool:
        return self.title_changed or self.body_changed or self.tags_changed
