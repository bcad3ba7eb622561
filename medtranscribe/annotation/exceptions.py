from medtranscribe.pipeline.exceptions import AnnotationFailedError


class EntityServiceError(AnnotationFailedError):
    """Raised when an entity detection provider call fails."""


class EntityValidationError(AnnotationFailedError):
    """Raised when a provider returns entities that do not fit the canonical shape."""
