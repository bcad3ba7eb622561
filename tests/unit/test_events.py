import json

import pytest

from medtranscribe.pipeline.exceptions import InvalidInputError
from medtranscribe.worker.events import ObjectCreated, parse_s3_event


def _event(*keys: str, bucket: str = "media") -> str:
    return json.dumps(
        {
            "Records": [
                {"s3": {"bucket": {"name": bucket}, "object": {"key": key}}} for key in keys
            ]
        }
    )


class TestParseS3Event:
    def test_extracts_objects(self) -> None:
        body = _event("audio/u1_1700000000_note.webm", "transcripts/x.json")

        assert parse_s3_event(body) == [
            ObjectCreated(bucket="media", key="audio/u1_1700000000_note.webm"),
            ObjectCreated(bucket="media", key="transcripts/x.json"),
        ]

    def test_decodes_keys(self) -> None:
        body = _event("audio/u1_1700000000_visit+notes%28final%29.webm")

        assert parse_s3_event(body)[0].key == "audio/u1_1700000000_visit notes(final).webm"

    def test_test_event_yields_nothing(self) -> None:
        body = json.dumps({"Service": "Amazon S3", "Event": "s3:TestEvent"})
        assert parse_s3_event(body) == []

    @pytest.mark.parametrize(
        "body",
        [
            "not json",
            "[]",
            json.dumps({"Records": "x"}),
            json.dumps({"Records": [{"s3": {"bucket": {"name": "b"}}}]}),
        ],
    )
    def test_rejects_unrecognized_bodies(self, body: str) -> None:
        with pytest.raises(InvalidInputError):
            parse_s3_event(body)
