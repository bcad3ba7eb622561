from typing import Any

from medtranscribe.annotation.base import BaseAnnotator
from medtranscribe.database.models import RecordStatus, ReportRecord
from medtranscribe.database.repositories.report_repository import ReportRepository
from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.context import PipelineContext
from medtranscribe.pipeline.exceptions import (
    ExternalServiceRejectedError,
    InvalidInputError,
    JobFailedError,
    JobTimedOutError,
    PipelineError,
    RecordNotFoundError,
    TransitionRejectedError,
)
from medtranscribe.pipeline.job_spec import JobSpecBuilder, parse_artifact_key, parse_media_key
from medtranscribe.pipeline.merger import RecordMerger
from medtranscribe.pipeline.models import JobSpec, SpeechJobStatus, WatchOutcome, WatchState
from medtranscribe.pipeline.processor import Processor
from medtranscribe.pipeline.steps import (
    AnnotateStep,
    MarkFailedStep,
    PersistCompletedStep,
    PersistTranscriptStep,
    ResolveTranscriptStep,
)
from medtranscribe.pipeline.submitter import JobSubmitter
from medtranscribe.pipeline.transcript_resolver import TranscriptResolver
from medtranscribe.pipeline.watcher import CompletionWatcher, failure_for


class TranscriptionPipeline:
    """Entry points into the transcription-and-annotation pipeline.

    Each method is one stateless stage invocation; all coordination
    between invocations goes through conditional writes on the record.
    """

    def __init__(
        self,
        *,
        report_repo: ReportRepository,
        spec_builder: JobSpecBuilder,
        submitter: JobSubmitter,
        watcher: CompletionWatcher,
        resolver: TranscriptResolver,
        annotator: BaseAnnotator,
        merger: RecordMerger,
        media_bucket: str = "",
        stale_after_seconds: float = 1800.0,
    ) -> None:
        self._report_repo = report_repo
        self._spec_builder = spec_builder
        self._submitter = submitter
        self._watcher = watcher
        self._media_bucket = media_bucket
        self._stale_after_seconds = stale_after_seconds

        resolve = ResolveTranscriptStep(resolver)
        persist_transcript = PersistTranscriptStep(merger)
        annotate = AnnotateStep(annotator)
        complete = PersistCompletedStep(merger)
        failed = MarkFailedStep(merger)
        self._notified_chain = Processor([resolve, annotate, complete], failed)
        self._inline_chain = Processor([resolve, persist_transcript, annotate, complete], failed)
        # Caller-supplied transcripts never overwrite a terminal record.
        open_statuses = frozenset({RecordStatus.DRAFT, RecordStatus.PROCESSING})
        direct_complete = PersistCompletedStep(
            merger, allowed_from=frozenset({RecordStatus.PROCESSING})
        )
        direct_failed = MarkFailedStep(merger, allowed_from=open_statuses)
        self._direct_draft_chain = Processor(
            [persist_transcript, annotate, direct_complete], direct_failed
        )
        self._direct_chain = Processor([annotate, direct_complete], direct_failed)

    def on_media_arrived(self, bucket: str, key: str) -> JobSpec | None:
        """Submit a transcription job for a newly uploaded audio object.

        Returns:
            The submitted spec, or None if the record already has a job.
        """
        arrival = parse_media_key(bucket, key)
        record = self._record_for_media(arrival.owner_id, key)
        if record.status != RecordStatus.DRAFT:
            Log.info(f"Record {record.id} is {record.status.value}, not resubmitting")
            return None
        spec = self._spec_builder.from_arrival(arrival, record.id)
        self._submitter.submit(spec, record.id, record.owner_id)
        return spec

    def on_transcript_created(self, bucket: str, key: str) -> ReportRecord:
        """Complete a record once its transcript artifact has been written."""
        job_name, record_id = parse_artifact_key(key)
        record = self._report_repo.find_by_job_name(job_name)
        if record is None:
            raise RecordNotFoundError(f"No record was submitted with job {job_name}")
        if record.id != record_id:
            raise InvalidInputError(
                f"Artifact {key} names record {record_id}, job belongs to {record.id}"
            )
        outcome = self._watcher.resolve_notified(job_name, f"s3://{bucket}/{key}")
        context = self._finish(record, outcome, self._notified_chain)
        if context.record is None:
            raise ValueError(f"Completion of record {record.id} produced no record")
        return context.record

    def transcribe_file(self, file_key: str) -> dict[str, Any]:
        """Submit, wait for and annotate one upload inline."""
        if not self._media_bucket:
            raise InvalidInputError("media_bucket must be configured for direct transcription")
        arrival = parse_media_key(self._media_bucket, file_key)
        record = self._record_for_media(arrival.owner_id, file_key)
        spec = self._spec_builder.from_arrival(arrival, record.id)
        self._submitter.submit(spec, record.id, record.owner_id)

        outcome = self._watcher.watch(spec.job_name, fallback_artifact_uri=spec.output_uri)
        context = self._finish(record, outcome, self._inline_chain)
        return {"transcript": context.transcript, "id": record.id}

    def annotate_transcript(self, record_id: str, transcript: str) -> dict[str, Any]:
        """Annotate a transcript supplied by the caller and complete the record."""
        record = self._report_repo.find_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record {record_id} not found")
        if record.status in (RecordStatus.COMPLETED, RecordStatus.FAILED):
            raise TransitionRejectedError(
                f"Record {record.id} is {record.status.value}, "
                "cannot annotate a caller-supplied transcript"
            )
        chain = (
            self._direct_draft_chain
            if record.status == RecordStatus.DRAFT
            else self._direct_chain
        )
        context = chain.process(
            PipelineContext(
                record_id=record.id,
                owner_id=record.owner_id,
                transcript=transcript,
            )
        )
        if context.annotation is None:
            raise ValueError(f"Annotation of record {record.id} produced no annotation")
        return {
            "transcriptionId": record.id,
            "summary": context.annotation.summary.to_payload(),
        }

    def handle_direct(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Dispatch a synchronous invocation payload.

        Accepts {"fileKey"} or {"transcriptionId", "transcript"}.
        """
        file_key = payload.get("fileKey")
        if file_key is not None:
            if not isinstance(file_key, str) or not file_key:
                raise InvalidInputError("fileKey must be a non-empty string")
            return self.transcribe_file(file_key)

        record_id = payload.get("transcriptionId")
        transcript = payload.get("transcript")
        if isinstance(record_id, str) and record_id and isinstance(transcript, str):
            return self.annotate_transcript(record_id, transcript)
        raise InvalidInputError(
            "Direct invocation needs fileKey, or transcriptionId and transcript"
        )

    def reconcile_stale(self) -> int:
        """Resolve processing records whose job has gone quiet.

        Returns:
            Number of records moved to a terminal state.
        """
        resolved = 0
        for record in self._report_repo.list_stale_processing(self._stale_after_seconds):
            try:
                self._reconcile(record)
                resolved += 1
            except PipelineError as exc:
                if exc.failure_kind is not None:
                    resolved += 1
                    continue
                Log.warning(f"Reconciliation of record {record.id} did not complete: {exc}")
        if resolved:
            Log.info(f"Reconciled {resolved} stale records")
        return resolved

    def _reconcile(self, record: ReportRecord) -> None:
        if record.job_name is None:
            raise ValueError(f"Record {record.id} has no job to reconcile")
        job_name = record.job_name
        try:
            report = self._watcher.poll_once(job_name)
        except ExternalServiceRejectedError as exc:
            Log.warning(f"Status of job {job_name} unavailable during reconciliation: {exc}")
            report = None

        context = PipelineContext(record_id=record.id, owner_id=record.owner_id)
        if report is not None and report.status == SpeechJobStatus.COMPLETED:
            if report.transcript_uri is None:
                error: PipelineError = JobFailedError(
                    f"Transcription job {job_name} completed without a transcript location"
                )
            else:
                outcome = WatchOutcome(
                    job_name=job_name,
                    state=WatchState.RESOLVED_OK,
                    attempts=1,
                    artifact_uri=report.transcript_uri,
                )
                self._finish(record, outcome, self._notified_chain)
                return
        elif report is not None and report.status == SpeechJobStatus.FAILED:
            reason = report.failure_reason or "no reason given"
            error = JobFailedError(f"Transcription job {job_name} failed: {reason}")
        else:
            error = JobTimedOutError(
                f"Transcription job {job_name} unresolved after "
                f"{int(self._stale_after_seconds)}s"
            )
        self._notified_chain.record_failure(context, error)
        Log.error(f"Reconciled record {record.id} as failed: {error}")

    def _finish(
        self, record: ReportRecord, outcome: WatchOutcome, chain: Processor
    ) -> PipelineContext:
        context = PipelineContext(
            record_id=record.id,
            owner_id=record.owner_id,
            artifact_uri=outcome.artifact_uri,
        )
        error = failure_for(outcome)
        if error is not None:
            chain.record_failure(context, error)
            raise error
        return chain.process(context)

    def _record_for_media(self, owner_id: str, key: str) -> ReportRecord:
        record = self._report_repo.find_by_media_key(owner_id, key)
        if record is None:
            raise RecordNotFoundError(f"No record for media {key} of owner {owner_id}")
        return record
