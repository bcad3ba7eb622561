import json
from unittest.mock import MagicMock, patch

import pytest

from medtranscribe.pipeline.exceptions import MalformedTranscriptError, TranscriptFetchError
from medtranscribe.pipeline.transcript_resolver import TranscriptResolver


def _artifact(document: object) -> bytes:
    return json.dumps(document).encode("utf-8")


def _make_resolver(raw: bytes) -> tuple[TranscriptResolver, MagicMock]:
    store = MagicMock()
    store.fetch.return_value = raw
    return TranscriptResolver(store), store


class TestResolve:
    def test_extracts_primary_transcript(self) -> None:
        resolver, store = _make_resolver(
            _artifact({"results": {"transcripts": [{"transcript": "Patient has diabetes."}]}})
        )

        transcript = resolver.resolve("s3://b/transcripts/x.json")

        assert transcript == "Patient has diabetes."
        store.fetch.assert_called_once_with("s3://b/transcripts/x.json")

    def test_empty_transcript_is_valid(self) -> None:
        resolver, _ = _make_resolver(_artifact({"results": {"transcripts": [{"transcript": ""}]}}))
        assert resolver.resolve("s3://b/x.json") == ""

    def test_fetch_errors_pass_through(self) -> None:
        store = MagicMock()
        store.fetch.side_effect = TranscriptFetchError("connection reset")

        with pytest.raises(TranscriptFetchError):
            TranscriptResolver(store).resolve("s3://b/x.json")

    @pytest.mark.parametrize(
        "document",
        [
            {},
            {"results": {}},
            {"results": {"transcripts": []}},
            {"results": {"transcripts": [{}]}},
            {"results": {"transcripts": [{"transcript": 42}]}},
            {"results": "nope"},
            [],
        ],
    )
    def test_missing_path_is_malformed(self, document: object) -> None:
        resolver, _ = _make_resolver(_artifact(document))
        with pytest.raises(MalformedTranscriptError):
            resolver.resolve("s3://b/x.json")

    def test_invalid_json_is_malformed(self) -> None:
        resolver, _ = _make_resolver(b"{not json")
        with pytest.raises(MalformedTranscriptError, match="not UTF-8 JSON"):
            resolver.resolve("s3://b/x.json")

    def test_invalid_utf8_is_malformed(self) -> None:
        resolver, _ = _make_resolver(b"\xff\xfe\x00")
        with pytest.raises(MalformedTranscriptError):
            resolver.resolve("s3://b/x.json")

    def test_malformed_artifact_alerts_operators(self) -> None:
        resolver, _ = _make_resolver(_artifact({"results": {}}))
        with patch("medtranscribe.pipeline.transcript_resolver.Log") as mock_log:
            with pytest.raises(MalformedTranscriptError):
                resolver.resolve("s3://b/x.json")
        mock_log.alert.assert_called_once()
