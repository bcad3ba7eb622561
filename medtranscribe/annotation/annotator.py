"""Medical entity and PHI annotation of transcripts.

Processing flow:
1. Blank text short-circuits to an empty annotation, no provider call.
2. Entity and PHI detection are submitted to a two-thread pool.
3. The first failure abandons the other call and fails the whole step.
4. Raw provider items are validated into canonical entities.
5. The summary is computed from the validated lists.
"""

from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime
from typing import Any

from medtranscribe.annotation.base import BaseAnnotator
from medtranscribe.annotation.client_base import BaseEntityClient
from medtranscribe.annotation.exceptions import EntityServiceError, EntityValidationError
from medtranscribe.annotation.models import Annotation, Entity, EntityCategory
from medtranscribe.logging.logger import Log
from medtranscribe.pipeline.exceptions import AnnotationFailedError


def _utc_now() -> datetime:
    return datetime.now(UTC)


class MedicalAnnotator(BaseAnnotator):
    """Runs entity and PHI detection concurrently with all-or-nothing results."""

    def __init__(
        self,
        *,
        client: BaseEntityClient,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._client = client
        self._clock = clock

    def annotate(self, text: str) -> Annotation:
        if not text.strip():
            Log.debug("Empty transcript, skipping entity detection")
            return Annotation.build([], [], analyzed_at=self._clock())

        raw_entities, raw_phi = self._detect_both(text)
        entities = [self._to_entity(item) for item in raw_entities]
        phi = [self._to_entity(item) for item in raw_phi]

        annotation = Annotation.build(entities, phi, analyzed_at=self._clock())
        Log.info(
            f"Annotation complete: {annotation.summary.total_entities} entities, "
            f"{annotation.summary.total_phi} PHI"
        )
        return annotation

    def _detect_both(
        self, text: str
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="annotate")
        try:
            entities_future = pool.submit(self._client.detect_entities, text)
            phi_future = pool.submit(self._client.detect_phi, text)
            labelled = ((entities_future, "entity"), (phi_future, "PHI"))
            done, _ = wait([entities_future, phi_future], return_when=FIRST_EXCEPTION)
            # Raise from whichever call finished with an error before touching
            # the other one, which may still be running and is abandoned.
            for future, label in labelled:
                if future in done:
                    self._raise_for_failure(future, label)
            return (
                self._result_of(entities_future, "entity"),
                self._result_of(phi_future, "PHI"),
            )
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _raise_for_failure(future: Future[list[dict[str, Any]]], label: str) -> None:
        exc = future.exception()
        if isinstance(exc, AnnotationFailedError):
            raise exc
        if exc is not None:
            raise EntityServiceError(f"{label} detection failed: {exc}") from exc

    @staticmethod
    def _result_of(future: Future[list[dict[str, Any]]], label: str) -> list[dict[str, Any]]:
        result = future.result()
        if not isinstance(result, list):
            raise EntityValidationError(f"{label} detection returned {type(result).__name__}")
        return result

    @staticmethod
    def _to_entity(item: dict[str, Any]) -> Entity:
        try:
            category = EntityCategory(item["Category"])
            confidence = float(item["Score"])
            begin_offset = int(item["BeginOffset"])
            end_offset = int(item["EndOffset"])
            entity_text = str(item["Text"])
            entity_type = str(item["Type"])
        except (KeyError, TypeError, ValueError) as exc:
            raise EntityValidationError(f"Malformed entity from provider: {exc}") from exc

        if not 0.0 <= confidence <= 1.0:
            raise EntityValidationError(f"Entity confidence {confidence} outside [0, 1]")
        if begin_offset < 0 or end_offset < begin_offset:
            raise EntityValidationError(
                f"Invalid entity offsets [{begin_offset}, {end_offset})"
            )
        return Entity(
            text=entity_text,
            category=category,
            type=entity_type,
            confidence=confidence,
            begin_offset=begin_offset,
            end_offset=end_offset,
        )
