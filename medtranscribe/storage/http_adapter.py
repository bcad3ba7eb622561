import httpx

from medtranscribe.pipeline.exceptions import TranscriptFetchError
from medtranscribe.storage.base import BaseArtifactStore


class HttpArtifactStore(BaseArtifactStore):
    """Reads artifacts from https URLs (service-managed or presigned)."""

    def __init__(self, *, timeout_seconds: int, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def fetch(self, uri: str) -> bytes:
        try:
            response = self._client.get(uri)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TranscriptFetchError(f"Could not download transcript: {exc}") from exc
        return response.content

    def close(self) -> None:
        self._client.close()
