from collections.abc import Sequence

from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.context import PipelineContext, PipelineStep
from medtranscribe.pipeline.exceptions import PipelineError, TransitionRejectedError


class Processor:
    """Runs pipeline steps in order for one record.

    Errors that carry a failure kind are written to the record through the
    failed step, then re-raised. Anything else propagates untouched so the
    triggering event can be redelivered.
    """

    def __init__(self, steps: Sequence[PipelineStep], failed_step: PipelineStep) -> None:
        self._steps = list(steps)
        self._failed_step = failed_step

    def process(self, context: PipelineContext) -> PipelineContext:
        try:
            for step in self._steps:
                context = step.run(context)
        except PipelineError as exc:
            if exc.failure_kind is not None:
                context.error = exc
                self._record_failure(context)
            raise
        return context

    def record_failure(self, context: PipelineContext, error: PipelineError) -> PipelineContext:
        """Write a failure that happened outside the steps (e.g. a failed watch)."""
        context.error = error
        self._record_failure(context)
        return context

    def _record_failure(self, context: PipelineContext) -> None:
        try:
            self._failed_step.run(context)
        except TransitionRejectedError as exc:
            Log.warning(f"Failure of record {context.record_id} not recorded: {exc}")
