from urllib.parse import urlparse

from medtranscribe.pipeline.exceptions import InvalidInputError
from medtranscribe.storage.base import BaseArtifactStore


class ArtifactStoreRouter(BaseArtifactStore):
    """Dispatches fetches to the store registered for the URI scheme."""

    def __init__(self, stores: dict[str, BaseArtifactStore]) -> None:
        self._stores = stores

    def fetch(self, uri: str) -> bytes:
        scheme = urlparse(uri).scheme
        store = self._stores.get(scheme)
        if store is None:
            raise InvalidInputError(
                f"No artifact store for scheme '{scheme}'. Choose from: {sorted(self._stores)}"
            )
        return store.fetch(uri)
