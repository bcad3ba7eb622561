"""Synchronous invocation: python -m medtranscribe.invoke '{"fileKey": "audio/..."}'."""

import json
import sys

import boto3

from medtranscribe.config.settings import Settings
from medtranscribe.database.connection import create_pool
from medtranscribe.database.repositories.report_repository import ReportRepository
from medtranscribe.logging.logger import Log
from medtranscribe.main import build_pipeline
from medtranscribe.pipeline.exceptions import PipelineError
from medtranscribe.storage.http_adapter import HttpArtifactStore


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print(__doc__, file=sys.stderr)
        return 2
    try:
        payload = json.loads(args[0])
    except json.JSONDecodeError as exc:
        print(f"Payload is not JSON: {exc}", file=sys.stderr)
        return 2
    if not isinstance(payload, dict):
        print("Payload must be a JSON object", file=sys.stderr)
        return 2

    settings = Settings()
    Log.configure(settings.log_level)
    pool = create_pool(settings)
    http_store = HttpArtifactStore(timeout_seconds=settings.artifact_http_timeout_seconds)
    session = boto3.session.Session(region_name=settings.aws_region)
    try:
        pipeline, _watcher = build_pipeline(settings, ReportRepository(pool), session, http_store)
        result = pipeline.handle_direct(payload)
    except PipelineError as exc:
        Log.error(f"Direct invocation failed with {type(exc).__name__}: {exc}")
        print(json.dumps({"error": type(exc).__name__, "message": str(exc)}))
        return 1
    finally:
        http_store.close()
        pool.close()
    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
