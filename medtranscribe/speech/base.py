from abc import ABC, abstractmethod

from medtranscribe.pipeline.models import JobSpec, JobStatusReport


class BaseSpeechClient(ABC):
    """Contract for queue-based speech-to-text job services."""

    @abstractmethod
    def submit(self, spec: JobSpec) -> None:
        """Start a transcription job.

        Raises:
            ExternalServiceRejectedError: if the service refuses the job.
        """

    @abstractmethod
    def get_status(self, job_name: str) -> JobStatusReport:
        """Return the current status of a job.

        Raises:
            ExternalServiceRejectedError: if the status call is refused,
                including for job names the service does not know.
        """
