from medtranscribe.annotation.base import BaseAnnotator
from medtranscribe.database.models import RecordStatus
from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.context import PipelineContext, PipelineStep
from medtranscribe.pipeline.merger import RecordMerger
from medtranscribe.pipeline.transcript_resolver import TranscriptResolver


class ResolveTranscriptStep(PipelineStep):
    def __init__(self, resolver: TranscriptResolver) -> None:
        self._resolver = resolver

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.artifact_uri is None:
            raise ValueError("PipelineContext.artifact_uri must be set before resolving")
        context.transcript = self._resolver.resolve(context.artifact_uri)
        return context


class PersistTranscriptStep(PipelineStep):
    def __init__(self, merger: RecordMerger) -> None:
        self._merger = merger

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.transcript is None:
            raise ValueError("PipelineContext.transcript must be set before persist")
        context.record = self._merger.store_transcript(
            context.record_id, context.owner_id, context.transcript
        )
        Log.info(f"Stored transcript on record {context.record_id}")
        return context


class AnnotateStep(PipelineStep):
    def __init__(self, annotator: BaseAnnotator) -> None:
        self._annotator = annotator

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.transcript is None:
            raise ValueError("PipelineContext.transcript must be set before annotation")
        context.annotation = self._annotator.annotate(context.transcript)
        return context


class PersistCompletedStep(PipelineStep):
    def __init__(
        self, merger: RecordMerger, allowed_from: frozenset[RecordStatus] | None = None
    ) -> None:
        self._merger = merger
        self._allowed_from = allowed_from

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.transcript is None or context.annotation is None:
            raise ValueError(
                "PipelineContext.transcript and annotation must be set before completion"
            )
        context.record = self._merger.mark_completed(
            context.record_id,
            context.owner_id,
            context.transcript,
            context.annotation,
            allowed_from=self._allowed_from,
        )
        Log.info(f"Record {context.record_id} completed")
        return context


class MarkFailedStep(PipelineStep):
    def __init__(
        self, merger: RecordMerger, allowed_from: frozenset[RecordStatus] | None = None
    ) -> None:
        self._merger = merger
        self._allowed_from = allowed_from

    def run(self, context: PipelineContext) -> PipelineContext:
        error = context.error
        if error is None or error.failure_kind is None:
            raise ValueError("PipelineContext.error must carry a failure kind")
        context.record = self._merger.mark_failed(
            context.record_id,
            context.owner_id,
            error.failure_kind,
            str(error),
            transcript=context.transcript,
            allowed_from=self._allowed_from,
        )
        Log.error(f"Record {context.record_id} marked as failed: {error}")
        return context
