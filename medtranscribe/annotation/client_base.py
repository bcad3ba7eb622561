from abc import ABC, abstractmethod
from typing import Any


class BaseEntityClient(ABC):
    """Contract for provider-specific medical entity detection clients.

    Both methods return raw items shaped like
    {Text, Category, Type, Score, BeginOffset, EndOffset}.
    Implementations must be safe to call from two threads at once.
    """

    @abstractmethod
    def detect_entities(self, text: str) -> list[dict[str, Any]]:
        """Detect general medical entities."""

    @abstractmethod
    def detect_phi(self, text: str) -> list[dict[str, Any]]:
        """Detect protected health information."""
