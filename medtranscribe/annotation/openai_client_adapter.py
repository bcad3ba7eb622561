import json
from typing import Any, ClassVar

import httpx
import openai

from medtranscribe.annotation.client_base import BaseEntityClient
from medtranscribe.annotation.exceptions import EntityServiceError, EntityValidationError
from medtranscribe.annotation.models import EntityCategory

_ENTITY_SCHEMA: dict[str, object] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["Entities"],
    "properties": {
        "Entities": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["Text", "Category", "Type", "Score", "BeginOffset", "EndOffset"],
                "properties": {
                    "Text": {"type": "string"},
                    "Category": {"type": "string", "enum": [c.value for c in EntityCategory]},
                    "Type": {"type": "string"},
                    "Score": {"type": "number"},
                    "BeginOffset": {"type": "integer"},
                    "EndOffset": {"type": "integer"},
                },
            },
        }
    },
}


class OpenAIClientAdapter(BaseEntityClient):
    """Entity client built on an OpenAI-compatible chat API with JSON schema output."""

    ENTITY_PROMPT: ClassVar[str] = (
        "Extract medical entities (conditions, medications, anatomy, tests, "
        "treatments, procedures, time expressions, social factors) from the "
        "clinical transcript. Do not report protected health information. "
        "Offsets are zero-based character positions in the transcript."
    )
    PHI_PROMPT: ClassVar[str] = (
        "Extract protected health information (names, ages, dates, addresses, "
        "phone numbers, emails, identifiers, professions) from the clinical "
        "transcript. Use Category PROTECTED_HEALTH_INFORMATION. "
        "Offsets are zero-based character positions in the transcript."
    )

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._model = model
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def detect_entities(self, text: str) -> list[dict[str, Any]]:
        return self._extract(self.ENTITY_PROMPT, text)

    def detect_phi(self, text: str) -> list[dict[str, Any]]:
        return self._extract(self.PHI_PROMPT, text)

    def _extract(self, system_prompt: str, text: str) -> list[dict[str, Any]]:
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                temperature=0.0,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "entity_detection",
                        "strict": True,
                        "schema": _ENTITY_SCHEMA,
                    },
                },
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": text},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise EntityServiceError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise EntityServiceError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise EntityServiceError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise EntityServiceError("AI returned empty response")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise EntityValidationError(f"Invalid JSON response: {exc}") from exc
        if not isinstance(parsed, dict) or not isinstance(parsed.get("Entities"), list):
            raise EntityValidationError("JSON response must contain an 'Entities' list")
        return parsed["Entities"]
