from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class RecordStatus(str, Enum):
    DRAFT = "draft"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ReportRecord:
    """Represents a row from the reports table."""

    id: str
    owner_id: str
    status: RecordStatus
    media_key: str | None = None
    job_name: str | None = None
    transcript: str | None = None
    annotation: dict[str, Any] | None = None
    failure_kind: str | None = None
    error_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
