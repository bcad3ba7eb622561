from abc import ABC, abstractmethod


class BaseArtifactStore(ABC):
    """Contract for reading job artifacts by URI."""

    @abstractmethod
    def fetch(self, uri: str) -> bytes:
        """Return the raw bytes stored at uri.

        Raises:
            TranscriptFetchError: if the artifact cannot be read.
        """
