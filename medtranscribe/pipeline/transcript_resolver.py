import json

from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.exceptions import MalformedTranscriptError
from medtranscribe.storage.base import BaseArtifactStore


class TranscriptResolver:
    """Fetches a speech job artifact and extracts the primary transcript."""

    def __init__(self, artifact_store: BaseArtifactStore) -> None:
        self._artifact_store = artifact_store

    def resolve(self, artifact_uri: str) -> str:
        """Return results.transcripts[0].transcript from the artifact.

        Raises:
            TranscriptFetchError: if the artifact cannot be downloaded.
            MalformedTranscriptError: if it downloads but does not match the
                result envelope.
        """
        raw = self._artifact_store.fetch(artifact_uri)
        try:
            transcript = self.extract(raw)
        except MalformedTranscriptError as exc:
            Log.alert(
                f"Transcript artifact broke the result contract: {exc}",
                artifact_uri=artifact_uri,
            )
            raise
        Log.info(f"Resolved transcript of {len(transcript)} chars from {artifact_uri}")
        return transcript

    @staticmethod
    def extract(raw: bytes) -> str:
        try:
            document = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedTranscriptError(f"Artifact is not UTF-8 JSON: {exc}") from exc

        try:
            transcript = document["results"]["transcripts"][0]["transcript"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedTranscriptError(
                f"Artifact has no results.transcripts[0].transcript ({exc!r})"
            ) from exc
        if not isinstance(transcript, str):
            raise MalformedTranscriptError(
                f"Transcript is {type(transcript).__name__}, expected string"
            )
        return transcript
