from dataclasses import dataclass
from enum import Enum


class AudioFormat(str, Enum):
    WAV = "wav"
    MP3 = "mp3"
    MP4 = "mp4"
    WEBM = "webm"


class SpeechJobStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class WatchState(str, Enum):
    SUBMITTED = "SUBMITTED"
    POLLING = "POLLING"
    RESOLVED_OK = "RESOLVED_OK"
    RESOLVED_FAILED = "RESOLVED_FAILED"
    TIMED_OUT = "TIMED_OUT"


WATCH_TERMINAL_STATES: frozenset[WatchState] = frozenset(
    {WatchState.RESOLVED_OK, WatchState.RESOLVED_FAILED, WatchState.TIMED_OUT}
)


@dataclass(frozen=True)
class MediaArrival:
    """An object-created notification for an uploaded audio file."""

    bucket: str
    key: str
    owner_id: str

    @property
    def media_uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


@dataclass(frozen=True)
class JobSpec:
    """Everything the speech service needs to start one transcription job."""

    job_name: str
    media_uri: str
    audio_format: AudioFormat
    language_code: str
    output_bucket: str
    output_key: str

    @property
    def output_uri(self) -> str:
        return f"s3://{self.output_bucket}/{self.output_key}"


@dataclass(frozen=True)
class JobStatusReport:
    """One status observation of an external transcription job."""

    job_name: str
    status: SpeechJobStatus
    transcript_uri: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class WatchOutcome:
    """Terminal result of watching a job."""

    job_name: str
    state: WatchState
    attempts: int = 0
    artifact_uri: str | None = None
    failure_reason: str | None = None
