from abc import ABC, abstractmethod

from medtranscribe.annotation.models import Annotation


class BaseAnnotator(ABC):
    """Contract for all annotation adapters."""

    @abstractmethod
    def annotate(self, text: str) -> Annotation:
        """Extract medical entities and PHI from transcript text.

        Args:
            text: Plain transcript text. May be empty.

        Returns:
            Annotation with separate entity and PHI lists and a computed summary.

        Raises:
            AnnotationFailedError: if either detection fails. No partial
                annotation is ever returned.
        """
