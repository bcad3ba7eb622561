from typing import ClassVar


class PipelineError(Exception):
    """Base exception for all transcription pipeline errors.

    failure_kind is set on errors that end a record in the failed state;
    the failure step writes it to the record alongside the message.
    retryable errors leave the triggering event for redelivery.
    """

    failure_kind: ClassVar[str | None] = None
    retryable: ClassVar[bool] = False


class InvalidInputError(PipelineError):
    """Raised for malformed notifications, keys or invocation payloads."""


class ExternalServiceRejectedError(PipelineError):
    """Raised when the speech service rejects a submission or status call."""


class JobFailedError(PipelineError):
    """Raised when the external transcription job ended in a failed state."""

    failure_kind = "job_failed"


class JobTimedOutError(PipelineError):
    """Raised when a job did not finish within the watch attempt budget."""

    failure_kind = "job_timed_out"


class MalformedTranscriptError(PipelineError):
    """Raised when a transcript artifact does not match the expected envelope."""

    failure_kind = "malformed_transcript"


class TranscriptFetchError(PipelineError):
    """Raised when a transcript artifact cannot be downloaded."""

    retryable = True


class AnnotationFailedError(PipelineError):
    """Raised when entity or PHI detection fails."""

    failure_kind = "annotation_failed"


class RecordNotFoundError(PipelineError):
    """Raised when a pipeline stage targets a record that does not exist."""


class TransitionRejectedError(PipelineError):
    """Raised when a record's current status does not allow the requested write."""


class WatchCancelledError(PipelineError):
    """Raised when an active watch is interrupted before reaching a terminal state."""

    retryable = True
