import time
from collections.abc import Callable

from medtranscribe.config.settings import Settings
from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.service import TranscriptionPipeline
from medtranscribe.worker.event_runner import EventRunner
from medtranscribe.worker.message_source import BaseMessageSource, QueueMessage


class Worker:
    """Poll loop: receive -> dispatch, with periodic stale-record reconciliation."""

    def __init__(
        self,
        source: BaseMessageSource,
        event_runner: EventRunner,
        pipeline: TranscriptionPipeline,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._event_runner = event_runner
        self._pipeline = pipeline
        self._settings = settings
        self._clock = clock
        self._last_reconcile: float | None = None

    def run(self, max_batches: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_batches is set, stop after that many receive calls (for testing).
        """
        Log.info("Worker started, polling for events")
        batches = 0
        try:
            while max_batches is None or batches < max_batches:
                self._maybe_reconcile()
                for message in self._try_receive():
                    self._event_runner.run(message)
                batches += 1
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _try_receive(self) -> list[QueueMessage]:
        """Receive the next batch. Gracefully handle queue errors."""
        try:
            return self._source.receive()
        except Exception as exc:
            Log.warning(f"Queue error, will retry: {exc}")
            time.sleep(self._settings.queue_wait_seconds)
            return []

    def _maybe_reconcile(self) -> None:
        now = self._clock()
        if (
            self._last_reconcile is not None
            and now - self._last_reconcile < self._settings.reconcile_interval_seconds
        ):
            return
        self._last_reconcile = now
        try:
            self._pipeline.reconcile_stale()
        except Exception as exc:
            Log.warning(f"Reconciliation failed, will retry: {exc}")
