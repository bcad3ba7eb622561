from medtranscribe.config.settings import Settings
from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.exceptions import InvalidInputError, PipelineError
from medtranscribe.pipeline.job_spec import AUDIO_PREFIX, TRANSCRIPT_PREFIX
from medtranscribe.pipeline.service import TranscriptionPipeline
from medtranscribe.worker.events import ObjectCreated, parse_s3_event
from medtranscribe.worker.message_source import BaseMessageSource, QueueMessage


class EventRunner:
    """Handle one queue message, catch exceptions, and decide on redelivery."""

    def __init__(
        self,
        pipeline: TranscriptionPipeline,
        source: BaseMessageSource,
        settings: Settings,
    ) -> None:
        self._pipeline = pipeline
        self._source = source
        self._settings = settings

    def run(self, message: QueueMessage) -> None:
        """Dispatch every object in the message, then acknowledge or leave it.

        Each object is handled on its own: a terminal failure of one object is
        logged and skipped. The message is left for redelivery only when some
        object failed retryably; redelivered objects that already succeeded are
        handled idempotently.
        """
        Log.info(f"Handling message {message.message_id} (receive {message.receive_count})")
        try:
            objects = parse_s3_event(message.body)
        except InvalidInputError as exc:
            Log.error(f"Message {message.message_id} is not an S3 event: {exc}")
            self._source.ack(message)
            return

        retry_error: Exception | None = None
        for created in objects:
            try:
                self.dispatch(created)
            except PipelineError as exc:
                if exc.retryable:
                    retry_error = retry_error or exc
                    continue
                Log.error(
                    f"Object {created.key} ended with {type(exc).__name__}: {exc}",
                    message_id=message.message_id,
                )
            except Exception as exc:
                Log.warning(f"Object {created.key} failed: {exc}", message_id=message.message_id)
                retry_error = retry_error or exc

        if retry_error is not None:
            self._handle_retryable(message, retry_error)
            return
        self._source.ack(message)

    def dispatch(self, created: ObjectCreated) -> None:
        if created.key.startswith(AUDIO_PREFIX):
            self._pipeline.on_media_arrived(created.bucket, created.key)
        elif created.key.startswith(TRANSCRIPT_PREFIX):
            self._pipeline.on_transcript_created(created.bucket, created.key)
        else:
            raise InvalidInputError(f"No handler for object key '{created.key}'")

    def _handle_retryable(self, message: QueueMessage, exc: Exception) -> None:
        """Leave the message for redelivery; drop it once attempts run out."""
        Log.error(f"Message {message.message_id} failed: {exc}")
        if message.receive_count >= self._settings.max_message_attempts:
            Log.error(
                "Message permanently failed, dropping it",
                message_id=message.message_id,
                attempts=message.receive_count,
            )
            self._source.ack(message)
        else:
            Log.warning(
                f"Message {message.message_id} will be retried "
                f"(attempt {message.receive_count})"
            )
