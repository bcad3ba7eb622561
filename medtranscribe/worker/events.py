import json
from dataclasses import dataclass
from urllib.parse import unquote_plus

from medtranscribe.pipeline.exceptions import InvalidInputError


@dataclass(frozen=True)
class ObjectCreated:
    bucket: str
    key: str


def parse_s3_event(body: str) -> list[ObjectCreated]:
    """Extract created objects from an S3 event notification body.

    Keys arrive URL-encoded with '+' for spaces. s3:TestEvent messages
    yield no objects.

    Raises:
        InvalidInputError: if the body is not a recognizable S3 event.
    """
    try:
        document = json.loads(body)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Event body is not JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise InvalidInputError("Event body must be a JSON object")
    if document.get("Event") == "s3:TestEvent":
        return []

    records = document.get("Records")
    if not isinstance(records, list):
        raise InvalidInputError("Event body has no Records list")

    created: list[ObjectCreated] = []
    for record in records:
        try:
            bucket = record["s3"]["bucket"]["name"]
            raw_key = record["s3"]["object"]["key"]
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(f"S3 event record is missing {exc}") from exc
        created.append(ObjectCreated(bucket=bucket, key=unquote_plus(raw_key)))
    return created
