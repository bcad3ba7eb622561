from medtranscribe.database.models import ReportRecord
from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.merger import RecordMerger
from medtranscribe.pipeline.models import JobSpec
from medtranscribe.speech.base import BaseSpeechClient


class JobSubmitter:
    """Marks a record processing, then starts its transcription job.

    The record carries the job name before the service knows the job, so a
    completion event can never find the record without one. If submission
    fails afterwards the record stays processing; reconciliation times it out.
    """

    def __init__(self, speech_client: BaseSpeechClient, merger: RecordMerger) -> None:
        self._speech_client = speech_client
        self._merger = merger

    def submit(self, spec: JobSpec, record_id: str, owner_id: str) -> ReportRecord:
        record = self._merger.mark_processing(record_id, owner_id, spec.job_name)
        Log.info("Record marked as processing", record_id=record_id, job_name=spec.job_name)
        self._speech_client.submit(spec)
        Log.info(
            f"Started transcription job {spec.job_name} "
            f"({spec.audio_format.value}, {spec.language_code})"
        )
        return record
