"""Resolution of submitted transcription jobs to a terminal state.

Passive watches trust an artifact-created notification as the completion
signal. Active watches poll the speech service on a fixed interval until
the job leaves IN_PROGRESS or the attempt budget runs out:

    SUBMITTED -> POLLING -> RESOLVED_OK | RESOLVED_FAILED | TIMED_OUT
"""

import threading
from dataclasses import dataclass

from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.exceptions import (
    JobFailedError,
    JobTimedOutError,
    PipelineError,
    WatchCancelledError,
)
from medtranscribe.pipeline.models import (
    WATCH_TERMINAL_STATES,
    JobStatusReport,
    SpeechJobStatus,
    WatchOutcome,
    WatchState,
)
from medtranscribe.speech.base import BaseSpeechClient


@dataclass
class WatchSession:
    """State machine for one active watch, advanced by one status report per tick."""

    job_name: str
    max_attempts: int
    fallback_artifact_uri: str | None = None
    state: WatchState = WatchState.SUBMITTED
    attempts: int = 0
    last_report: JobStatusReport | None = None

    @property
    def done(self) -> bool:
        return self.state in WATCH_TERMINAL_STATES

    def advance(self, report: JobStatusReport) -> WatchState:
        if self.done:
            raise ValueError(f"Watch for {self.job_name} already ended as {self.state.value}")
        self.attempts += 1
        self.last_report = report
        if report.status == SpeechJobStatus.COMPLETED:
            self.state = WatchState.RESOLVED_OK
        elif report.status == SpeechJobStatus.FAILED:
            self.state = WatchState.RESOLVED_FAILED
        elif self.attempts >= self.max_attempts:
            self.state = WatchState.TIMED_OUT
        else:
            self.state = WatchState.POLLING
        return self.state

    def outcome(self) -> WatchOutcome:
        if not self.done:
            raise ValueError(f"Watch for {self.job_name} has not ended")
        report = self.last_report
        artifact_uri = None
        if self.state == WatchState.RESOLVED_OK:
            artifact_uri = (report.transcript_uri if report else None) or self.fallback_artifact_uri
        return WatchOutcome(
            job_name=self.job_name,
            state=self.state,
            attempts=self.attempts,
            artifact_uri=artifact_uri,
            failure_reason=report.failure_reason if report else None,
        )


def failure_for(outcome: WatchOutcome) -> PipelineError | None:
    """Map a non-OK outcome to the error recorded on the report."""
    if outcome.state == WatchState.RESOLVED_FAILED:
        reason = outcome.failure_reason or "no reason given"
        return JobFailedError(f"Transcription job {outcome.job_name} failed: {reason}")
    if outcome.state == WatchState.TIMED_OUT:
        return JobTimedOutError(
            f"Gave up waiting for transcription job {outcome.job_name} "
            f"after {outcome.attempts} status checks"
        )
    return None


class CompletionWatcher:
    """Resolves jobs passively (notification) or actively (polling)."""

    def __init__(
        self,
        speech_client: BaseSpeechClient,
        *,
        poll_interval_seconds: float,
        max_attempts: int,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._speech_client = speech_client
        self._poll_interval_seconds = poll_interval_seconds
        self._max_attempts = max_attempts
        self._cancelled = threading.Event()

    def resolve_notified(self, job_name: str, artifact_uri: str) -> WatchOutcome:
        """The artifact exists, so the job is complete."""
        return WatchOutcome(
            job_name=job_name,
            state=WatchState.RESOLVED_OK,
            artifact_uri=artifact_uri,
        )

    def poll_once(self, job_name: str) -> JobStatusReport:
        return self._speech_client.get_status(job_name)

    def watch(self, job_name: str, fallback_artifact_uri: str | None = None) -> WatchOutcome:
        """Poll until the job ends or the attempt budget is spent.

        Raises:
            WatchCancelledError: if cancel() is called while waiting.
            ExternalServiceRejectedError: if a status call is refused.
        """
        session = WatchSession(
            job_name=job_name,
            max_attempts=self._max_attempts,
            fallback_artifact_uri=fallback_artifact_uri,
        )
        while True:
            if self._cancelled.is_set():
                raise WatchCancelledError(f"Watch for job {job_name} was cancelled")
            state = session.advance(self.poll_once(job_name))
            Log.debug(f"Job {job_name} check {session.attempts}: {state.value}")
            if session.done:
                break
            if self._cancelled.wait(self._poll_interval_seconds):
                raise WatchCancelledError(f"Watch for job {job_name} was cancelled")

        outcome = session.outcome()
        Log.info(
            f"Job {job_name} resolved as {outcome.state.value} "
            f"after {outcome.attempts} checks"
        )
        return outcome

    def cancel(self) -> None:
        """Interrupt any watch in progress, and any started afterwards."""
        self._cancelled.set()
