from typing import Any, ClassVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from medtranscribe.annotation.client_base import BaseEntityClient
from medtranscribe.annotation.exceptions import EntityServiceError


class ComprehendMedicalClientAdapter(BaseEntityClient):
    """Entity client backed by AWS Comprehend Medical."""

    # DetectEntitiesV2 and DetectPHI reject longer input.
    MAX_TEXT_CHARS: ClassVar[int] = 20_000

    def __init__(self, *, region_name: str, client: Any | None = None) -> None:
        self._client = client or boto3.client("comprehendmedical", region_name=region_name)

    def detect_entities(self, text: str) -> list[dict[str, Any]]:
        self._check_length(text)
        try:
            response = self._client.detect_entities_v2(Text=text)
        except (ClientError, BotoCoreError) as exc:
            raise EntityServiceError(f"Comprehend Medical entity call failed: {exc}") from exc
        return list(response.get("Entities", []))

    def detect_phi(self, text: str) -> list[dict[str, Any]]:
        self._check_length(text)
        try:
            response = self._client.detect_phi(Text=text)
        except (ClientError, BotoCoreError) as exc:
            raise EntityServiceError(f"Comprehend Medical PHI call failed: {exc}") from exc
        return list(response.get("Entities", []))

    def _check_length(self, text: str) -> None:
        if len(text) > self.MAX_TEXT_CHARS:
            raise EntityServiceError(
                f"Transcript has {len(text)} chars, "
                f"Comprehend Medical accepts at most {self.MAX_TEXT_CHARS}"
            )
