from typing import Any

from medtranscribe.annotation.annotator import MedicalAnnotator
from medtranscribe.annotation.base import BaseAnnotator
from medtranscribe.annotation.comprehend_client_adapter import ComprehendMedicalClientAdapter
from medtranscribe.annotation.example_client_adapter import ExampleClientAdapter
from medtranscribe.annotation.openai_client_adapter import OpenAIClientAdapter
from medtranscribe.config.settings import Settings


class AnnotatorFactory:
    """Creates the configured annotator."""

    PROVIDERS: tuple[str, ...] = ("comprehend_medical", "openai", "example")

    @classmethod
    def create(cls, settings: Settings, comprehend_client: Any | None = None) -> BaseAnnotator:
        """Create an annotator from application settings.

        comprehend_client lets the host share one boto3 client per process.
        """
        provider = settings.annotation_provider.lower()
        if provider == "example":
            return MedicalAnnotator(client=ExampleClientAdapter())
        if provider == "comprehend_medical":
            return MedicalAnnotator(
                client=ComprehendMedicalClientAdapter(
                    region_name=settings.aws_region,
                    client=comprehend_client,
                )
            )
        if provider == "openai":
            if not settings.annotation_openai_model_name:
                raise ValueError(
                    "annotation_openai_model_name is required for annotation_provider=openai"
                )
            return MedicalAnnotator(
                client=OpenAIClientAdapter(
                    api_key=settings.annotation_openai_api_key,
                    model=settings.annotation_openai_model_name,
                    timeout_seconds=settings.annotation_openai_timeout_seconds,
                    base_url=settings.annotation_openai_base_url,
                )
            )
        raise ValueError(
            f"Unknown annotation provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
