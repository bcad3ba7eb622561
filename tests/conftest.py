import json
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from medtranscribe.database.models import RecordStatus, ReportRecord


class InMemoryReportRepository:
    """ReportRepository stand-in with the same conditional-write semantics."""

    def __init__(self) -> None:
        self.records: dict[tuple[str, str], ReportRecord] = {}
        self._tick = datetime(2024, 1, 1, tzinfo=UTC)

    def add(
        self,
        record_id: str,
        owner_id: str,
        *,
        status: RecordStatus = RecordStatus.DRAFT,
        media_key: str | None = None,
        job_name: str | None = None,
        updated_at: datetime | None = None,
    ) -> ReportRecord:
        now = self._now()
        record = ReportRecord(
            id=record_id,
            owner_id=owner_id,
            status=status,
            media_key=media_key,
            job_name=job_name,
            created_at=now,
            updated_at=updated_at or now,
        )
        self.records[(record_id, owner_id)] = record
        return record

    def find(self, record_id: str, owner_id: str) -> ReportRecord | None:
        return self.records.get((record_id, owner_id))

    def find_by_id(self, record_id: str) -> ReportRecord | None:
        return next((r for r in self.records.values() if r.id == record_id), None)

    def find_by_job_name(self, job_name: str) -> ReportRecord | None:
        return next((r for r in self.records.values() if r.job_name == job_name), None)

    def find_by_media_key(self, owner_id: str, media_key: str) -> ReportRecord | None:
        return next(
            (
                r
                for r in self.records.values()
                if r.owner_id == owner_id and r.media_key == media_key
            ),
            None,
        )

    def list_by_owner(self, owner_id: str) -> list[ReportRecord]:
        return [r for r in self.records.values() if r.owner_id == owner_id]

    def list_stale_processing(self, older_than_seconds: float) -> list[ReportRecord]:
        cutoff = self._tick - timedelta(seconds=older_than_seconds)
        return [
            r
            for r in self.records.values()
            if r.status == RecordStatus.PROCESSING
            and r.job_name is not None
            and r.updated_at is not None
            and r.updated_at < cutoff
        ]

    def apply_update(
        self,
        record_id: str,
        owner_id: str,
        status: RecordStatus,
        allowed_from: Iterable[RecordStatus],
        fields: Mapping[str, Any],
    ) -> ReportRecord | None:
        current = self.records.get((record_id, owner_id))
        if current is None or current.status not in set(allowed_from):
            return None
        # Round-trip JSON columns like the database does.
        values = {
            k: json.loads(json.dumps(v)) if k == "annotation" and v is not None else v
            for k, v in fields.items()
        }
        updated = replace(current, status=status, updated_at=self._now(), **values)
        self.records[(record_id, owner_id)] = updated
        return updated

    def _now(self) -> datetime:
        self._tick += timedelta(milliseconds=1)
        return self._tick


@pytest.fixture()
def report_repo() -> InMemoryReportRepository:
    return InMemoryReportRepository()
