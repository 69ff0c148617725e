"""Interfaces of the collaborators the synchronization pipeline writes to."""

from abc import ABC, abstractmethod
from datetime import datetime

from app.models.alert import Alert
from app.models.document import DocumentState, RevisionOptions


class DocumentNotFoundError(LookupError):
    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")


class BaseDocumentStore(ABC):
    """Storage of discussion documents and their live notifications."""

    @abstractmethod
    async def get_document(self, document_id: str) -> DocumentState:
        """Raises DocumentNotFoundError."""

    @abstractmethod
    async def find_or_create(self, group_key: str, base_title: str) -> tuple[DocumentState, bool]:
        """Open document for an alert group; the flag tells whether it was created."""

    @abstractmethod
    async def set_body_template(self, document_id: str, body_template: str) -> None:
        """Store the rendered alert markdown in the document's custom field."""

    @abstractmethod
    async def revise_document(
        self,
        document_id: str,
        *,
        title: str,
        body: str,
        tags: list[str],
        options: RevisionOptions,
    ) -> None:
        """Apply title, body and tags atomically."""

    @abstractmethod
    async def append_tag_silently(self, document_id: str, tag: str) -> None:
        """Add a tag without a revision or notification."""

    @abstractmethod
    async def force_bump_timestamp(self, document_id: str, bumped_at: datetime) -> None:
        ...

    @abstractmethod
    async def publish_reload(self, document_id: str) -> None:
        """Tell live viewers to reload the document."""

    @abstractmethod
    async def publish_latest_state(self, document_id: str) -> None:
        """Tell "latest" listings that the document moved."""


class BaseAlertStore(ABC):
    """Persistence of alert records attached to documents."""

    @abstractmethod
    async def upsert_alerts(self, document_id: str, alerts: list[Alert]) -> None:
        ...

    @abstractmethod
    async def alerts_for_document(self, document_id: str) -> list[Alert]:
        ...

    @abstractmethod
    async def firing_count_for_document(self, document_id: str) -> int:
        ...

    @abstractmethod
    async def distinct_datacenters_for_document(self, document_id: str) -> list[str]:
        """Datacenters of the document's alerts, first seen first, None dropped."""

    @abstractmethod
    async def count_firing(self) -> int:
        """Documents with at least one firing alert."""

    @abstractmethod
    async def count_open(self) -> int:
        """Documents with at least one alert that is not resolved."""
