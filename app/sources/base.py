"""Base class for alert source parsers."""

from abc import ABC, abstractmethod
from typing import Any

from app.models.alert import AlertContext, NormalizationResult


class BaseSource(ABC):
    """Turns the raw alerts of one source into canonical Alert records."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique source identifier."""

    @abstractmethod
    def parse(
        self, raw_alerts: list[dict[str, Any]], context: AlertContext
    ) -> NormalizationResult:
        """Normalize a batch of raw alerts, one Alert per well-formed input."""
