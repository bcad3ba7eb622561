from abc import ABC, abstractmethod
from dataclasses import dataclass

from medtranscribe.annotation.models import Annotation
from medtranscribe.database.models import ReportRecord
from medtranscribe.pipeline.exceptions import PipelineError


@dataclass(slots=True)
class PipelineContext:
    record_id: str
    owner_id: str
    artifact_uri: str | None = None
    transcript: str | None = None
    annotation: Annotation | None = None
    record: ReportRecord | None = None
    error: PipelineError | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
