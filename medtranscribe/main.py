import boto3

from medtranscribe.annotation.factory import AnnotatorFactory
from medtranscribe.config.settings import Settings
from medtranscribe.database.connection import create_pool
from medtranscribe.database.repositories.report_repository import ReportRepository
from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.job_spec import JobSpecBuilder
from medtranscribe.pipeline.merger import RecordMerger
from medtranscribe.pipeline.service import TranscriptionPipeline
from medtranscribe.pipeline.submitter import JobSubmitter
from medtranscribe.pipeline.transcript_resolver import TranscriptResolver
from medtranscribe.pipeline.watcher import CompletionWatcher
from medtranscribe.speech.transcribe_client_adapter import TranscribeClientAdapter
from medtranscribe.storage.http_adapter import HttpArtifactStore
from medtranscribe.storage.router import ArtifactStoreRouter
from medtranscribe.storage.s3_adapter import S3ArtifactStore
from medtranscribe.worker.event_runner import EventRunner
from medtranscribe.worker.message_source import SqsMessageSource
from medtranscribe.worker.worker import Worker


def build_pipeline(
    settings: Settings,
    report_repo: ReportRepository,
    session: boto3.session.Session,
    http_store: HttpArtifactStore,
) -> tuple[TranscriptionPipeline, CompletionWatcher]:
    """Wire every stage with one shared client per external service."""
    region = settings.aws_region
    merger = RecordMerger(report_repo)
    speech_client = TranscribeClientAdapter(
        region_name=region,
        show_speaker_labels=settings.show_speaker_labels,
        max_speaker_labels=settings.max_speaker_labels,
        client=session.client("transcribe", region_name=region),
    )
    watcher = CompletionWatcher(
        speech_client,
        poll_interval_seconds=settings.watch_poll_interval_seconds,
        max_attempts=settings.watch_max_attempts,
    )
    artifact_store = ArtifactStoreRouter(
        {
            "s3": S3ArtifactStore(
                region_name=region,
                client=session.client("s3", region_name=region),
            ),
            "https": http_store,
        }
    )
    pipeline = TranscriptionPipeline(
        report_repo=report_repo,
        spec_builder=JobSpecBuilder(
            language_code=settings.language_code,
            output_bucket=settings.transcript_output_bucket,
        ),
        submitter=JobSubmitter(speech_client, merger),
        watcher=watcher,
        resolver=TranscriptResolver(artifact_store),
        annotator=AnnotatorFactory.create(
            settings,
            comprehend_client=session.client("comprehendmedical", region_name=region),
        ),
        merger=merger,
        media_bucket=settings.media_bucket,
        stale_after_seconds=settings.stale_after_seconds,
    )
    return pipeline, watcher


def main() -> None:
    """Entry point: open pool and clients -> build pipeline -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    pool = create_pool(settings)
    http_store = HttpArtifactStore(timeout_seconds=settings.artifact_http_timeout_seconds)
    session = boto3.session.Session(region_name=settings.aws_region)

    watcher: CompletionWatcher | None = None
    try:
        pipeline, watcher = build_pipeline(settings, ReportRepository(pool), session, http_store)
        source = SqsMessageSource(
            queue_url=settings.queue_url,
            region_name=settings.aws_region,
            wait_seconds=settings.queue_wait_seconds,
            max_messages=settings.queue_max_messages,
            client=session.client("sqs", region_name=settings.aws_region),
        )
        worker = Worker(source, EventRunner(pipeline, source, settings), pipeline, settings)
        worker.run()
    finally:
        if watcher is not None:
            watcher.cancel()
        http_store.close()
        pool.close()


if __name__ == "__main__":
    main()
