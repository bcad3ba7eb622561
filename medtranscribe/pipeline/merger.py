"""Forward-only, field-scoped writes to report records."""

from collections.abc import Mapping
from typing import Any

from medtranscribe.annotation.models import Annotation
from medtranscribe.database.models import RecordStatus, ReportRecord
from medtranscribe.database.repositories.report_repository import ReportRepository
from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.exceptions import RecordNotFoundError, TransitionRejectedError

_ALLOWED_TRANSITIONS: dict[RecordStatus, frozenset[RecordStatus]] = {
    RecordStatus.DRAFT: frozenset({RecordStatus.PROCESSING, RecordStatus.FAILED}),
    RecordStatus.PROCESSING: frozenset(
        {RecordStatus.PROCESSING, RecordStatus.COMPLETED, RecordStatus.FAILED}
    ),
    # Terminal states only accept a re-merge of the same state.
    RecordStatus.COMPLETED: frozenset({RecordStatus.COMPLETED}),
    RecordStatus.FAILED: frozenset({RecordStatus.FAILED}),
}


def can_transition(old_status: RecordStatus, new_status: RecordStatus) -> bool:
    return new_status in _ALLOWED_TRANSITIONS[old_status]


def allowed_predecessors(new_status: RecordStatus) -> frozenset[RecordStatus]:
    """Statuses a record may be in for a write that sets new_status."""
    return frozenset(
        old for old, targets in _ALLOWED_TRANSITIONS.items() if new_status in targets
    )


class RecordMerger:
    """Applies one stage's state transition to a record in a single conditional write.

    Callers never read the record first; the status guard runs in the database,
    so concurrent stages racing on one record cannot move it backwards.
    """

    def __init__(self, report_repo: ReportRepository) -> None:
        self._report_repo = report_repo

    def merge(
        self,
        record_id: str,
        owner_id: str,
        status: RecordStatus,
        fields: Mapping[str, Any] | None = None,
        allowed_from: frozenset[RecordStatus] | None = None,
    ) -> ReportRecord:
        """Set status plus the stage's own fields.

        Raises:
            RecordNotFoundError: if (record_id, owner_id) does not exist.
            TransitionRejectedError: if the current status forbids the write.
        """
        predecessors = allowed_predecessors(status)
        if allowed_from is not None:
            predecessors = predecessors & allowed_from
        updated = self._report_repo.apply_update(
            record_id,
            owner_id,
            status,
            predecessors,
            dict(fields or {}),
        )
        if updated is not None:
            Log.debug(f"Record {record_id} merged as {status.value}")
            return updated

        current = self._report_repo.find(record_id, owner_id)
        if current is None:
            raise RecordNotFoundError(
                f"Record {record_id} for owner {owner_id} not found"
            )
        raise TransitionRejectedError(
            f"Record {record_id} is {current.status.value}, "
            f"cannot move to {status.value}"
        )

    def mark_processing(self, record_id: str, owner_id: str, job_name: str) -> ReportRecord:
        """Attach a job to a draft record."""
        return self.merge(
            record_id,
            owner_id,
            RecordStatus.PROCESSING,
            {"job_name": job_name},
            allowed_from=frozenset({RecordStatus.DRAFT}),
        )

    def store_transcript(self, record_id: str, owner_id: str, transcript: str) -> ReportRecord:
        return self.merge(
            record_id,
            owner_id,
            RecordStatus.PROCESSING,
            {"transcript": transcript},
        )

    def mark_completed(
        self,
        record_id: str,
        owner_id: str,
        transcript: str,
        annotation: Annotation,
        allowed_from: frozenset[RecordStatus] | None = None,
    ) -> ReportRecord:
        """Complete a record. allowed_from narrows the statuses it may complete from."""
        return self.merge(
            record_id,
            owner_id,
            RecordStatus.COMPLETED,
            {
                "transcript": transcript,
                "annotation": annotation.to_payload(),
                "failure_kind": None,
                "error_reason": None,
            },
            allowed_from=allowed_from,
        )

    def mark_failed(
        self,
        record_id: str,
        owner_id: str,
        failure_kind: str,
        reason: str,
        transcript: str | None = None,
        allowed_from: frozenset[RecordStatus] | None = None,
    ) -> ReportRecord:
        """Mark a record failed. A transcript already obtained is kept."""
        fields: dict[str, Any] = {"failure_kind": failure_kind, "error_reason": reason}
        if transcript is not None:
            fields["transcript"] = transcript
        return self.merge(
            record_id, owner_id, RecordStatus.FAILED, fields, allowed_from=allowed_from
        )
