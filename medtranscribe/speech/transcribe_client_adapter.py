import re
from typing import Any, ClassVar
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from medtranscribe.pipeline.exceptions import ExternalServiceRejectedError
from medtranscribe.pipeline.models import JobSpec, JobStatusReport, SpeechJobStatus
from medtranscribe.speech.base import BaseSpeechClient

_PATH_STYLE_HOST_RE = re.compile(r"^s3(?:[.-][a-z0-9-]+)*\.amazonaws\.com$")
_VIRTUAL_HOST_RE = re.compile(
    r"^(?P<bucket>[a-z0-9][a-z0-9.-]*)\.s3(?:[.-][a-z0-9-]+)*\.amazonaws\.com$"
)


def to_s3_uri(transcript_uri: str) -> str:
    """Rewrite an S3 https URL to s3://bucket/key.

    Transcribe reports artifacts written to our own bucket as https URLs,
    path-style or virtual-hosted, that need signed access. Presigned URLs
    (with a query string) and other hosts are returned unchanged.
    """
    parsed = urlparse(transcript_uri)
    if parsed.scheme != "https" or parsed.query:
        return transcript_uri
    path = unquote(parsed.path.lstrip("/"))
    virtual = _VIRTUAL_HOST_RE.match(parsed.netloc)
    if virtual is not None:
        bucket, key = virtual.group("bucket"), path
    elif _PATH_STYLE_HOST_RE.match(parsed.netloc):
        bucket, _, key = path.partition("/")
    else:
        return transcript_uri
    if not bucket or not key:
        return transcript_uri
    return f"s3://{bucket}/{key}"


class TranscribeClientAdapter(BaseSpeechClient):
    """Speech client backed by AWS Transcribe batch jobs."""

    STATUS_MAP: ClassVar[dict[str, SpeechJobStatus]] = {
        "QUEUED": SpeechJobStatus.IN_PROGRESS,
        "IN_PROGRESS": SpeechJobStatus.IN_PROGRESS,
        "COMPLETED": SpeechJobStatus.COMPLETED,
        "FAILED": SpeechJobStatus.FAILED,
    }

    def __init__(
        self,
        *,
        region_name: str,
        show_speaker_labels: bool = True,
        max_speaker_labels: int = 4,
        client: Any | None = None,
    ) -> None:
        self._client = client or boto3.client("transcribe", region_name=region_name)
        self._show_speaker_labels = show_speaker_labels
        self._max_speaker_labels = max_speaker_labels

    def submit(self, spec: JobSpec) -> None:
        request: dict[str, Any] = {
            "TranscriptionJobName": spec.job_name,
            "LanguageCode": spec.language_code,
            "MediaFormat": spec.audio_format.value,
            "Media": {"MediaFileUri": spec.media_uri},
            "OutputBucketName": spec.output_bucket,
            "OutputKey": spec.output_key,
        }
        if self._show_speaker_labels:
            request["Settings"] = {
                "ShowSpeakerLabels": True,
                "MaxSpeakerLabels": self._max_speaker_labels,
            }
        try:
            self._client.start_transcription_job(**request)
        except (ClientError, BotoCoreError) as exc:
            raise ExternalServiceRejectedError(
                f"Transcribe rejected job {spec.job_name}: {exc}"
            ) from exc

    def get_status(self, job_name: str) -> JobStatusReport:
        try:
            response = self._client.get_transcription_job(TranscriptionJobName=job_name)
        except (ClientError, BotoCoreError) as exc:
            raise ExternalServiceRejectedError(
                f"Transcribe status call failed for job {job_name}: {exc}"
            ) from exc

        job = response["TranscriptionJob"]
        raw_status = job.get("TranscriptionJobStatus", "")
        status = self.STATUS_MAP.get(raw_status)
        if status is None:
            raise ExternalServiceRejectedError(
                f"Unknown Transcribe status '{raw_status}' for job {job_name}"
            )
        transcript_uri = job.get("Transcript", {}).get("TranscriptFileUri")
        return JobStatusReport(
            job_name=job_name,
            status=status,
            transcript_uri=to_s3_uri(transcript_uri) if transcript_uri else None,
            failure_reason=job.get("FailureReason"),
        )
