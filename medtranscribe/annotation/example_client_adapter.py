"""Offline entity client for local runs (annotation_provider=example).

New providers follow the same shape: subclass BaseEntityClient, return
Comprehend Medical style items, and add a branch to AnnotatorFactory.
"""

from typing import Any

from medtranscribe.annotation.client_base import BaseEntityClient


class ExampleClientAdapter(BaseEntityClient):
    """Detects nothing, so every transcript completes with an empty annotation."""

    def detect_entities(self, text: str) -> list[dict[str, Any]]:
        _ = text
        return []

    def detect_phi(self, text: str) -> list[dict[str, Any]]:
        _ = text
        return []
