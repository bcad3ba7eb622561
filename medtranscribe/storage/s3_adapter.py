from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from medtranscribe.pipeline.exceptions import TranscriptFetchError
from medtranscribe.pipeline.job_spec import split_s3_uri
from medtranscribe.storage.base import BaseArtifactStore


class S3ArtifactStore(BaseArtifactStore):
    """Reads s3://bucket/key artifacts."""

    def __init__(self, *, region_name: str, client: Any | None = None) -> None:
        self._client = client or boto3.client("s3", region_name=region_name)

    def fetch(self, uri: str) -> bytes:
        bucket, key = split_s3_uri(uri)
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            raise TranscriptFetchError(f"Could not read {uri}: {exc}") from exc
