from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EntityCategory(str, Enum):
    """Entity categories reported by medical entity and PHI detection."""

    ANATOMY = "ANATOMY"
    BEHAVIORAL_ENVIRONMENTAL_SOCIAL = "BEHAVIORAL_ENVIRONMENTAL_SOCIAL"
    MEDICAL_CONDITION = "MEDICAL_CONDITION"
    MEDICATION = "MEDICATION"
    PROTECTED_HEALTH_INFORMATION = "PROTECTED_HEALTH_INFORMATION"
    TEST_TREATMENT_PROCEDURE = "TEST_TREATMENT_PROCEDURE"
    TIME_EXPRESSION = "TIME_EXPRESSION"


@dataclass(frozen=True)
class Entity:
    """A detected span of transcript text."""

    text: str
    category: EntityCategory
    type: str
    confidence: float
    begin_offset: int
    end_offset: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "category": self.category.value,
            "type": self.type,
            "confidence": self.confidence,
            "beginOffset": self.begin_offset,
            "endOffset": self.end_offset,
        }


@dataclass(frozen=True)
class AnnotationSummary:
    total_entities: int
    total_phi: int
    categories: frozenset[EntityCategory]
    analyzed_at: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "totalEntities": self.total_entities,
            "totalPHI": self.total_phi,
            "categories": sorted(c.value for c in self.categories),
            "analyzedAt": self.analyzed_at.isoformat(),
        }


@dataclass(frozen=True)
class Annotation:
    """Medical entities and PHI found in one transcript.

    PHI is kept apart from general entities; consumers apply stricter
    access control to it.
    """

    summary: AnnotationSummary
    entities: list[Entity] = field(default_factory=list)
    phi: list[Entity] = field(default_factory=list)

    @classmethod
    def build(
        cls, entities: list[Entity], phi: list[Entity], analyzed_at: datetime
    ) -> "Annotation":
        summary = AnnotationSummary(
            total_entities=len(entities),
            total_phi=len(phi),
            categories=frozenset(e.category for e in entities),
            analyzed_at=analyzed_at,
        )
        return cls(summary=summary, entities=list(entities), phi=list(phi))

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready shape stored on the record."""
        return {
            "entities": [e.to_payload() for e in self.entities],
            "phi": [e.to_payload() for e in self.phi],
            "summary": self.summary.to_payload(),
        }
