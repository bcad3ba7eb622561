import pytest

from medtranscribe.pipeline.exceptions import InvalidInputError
from medtranscribe.pipeline.job_spec import (
    JobSpecBuilder,
    parse_artifact_key,
    parse_media_key,
    split_s3_uri,
)
from medtranscribe.pipeline.models import AudioFormat

RECORD_ID = "3f1c2a9e-8b7d-4c6e-9f10-2a3b4c5d6e7f"


def _builder(output_bucket: str = "") -> JobSpecBuilder:
    return JobSpecBuilder(
        language_code="en-US",
        output_bucket=output_bucket,
        clock=lambda: 1_700_000_000.5,
    )


class TestParseMediaKey:
    def test_extracts_owner_from_file_name(self) -> None:
        arrival = parse_media_key("b", "audio/u1_1700000000_note.webm")
        assert arrival.owner_id == "u1"
        assert arrival.bucket == "b"
        assert arrival.media_uri == "s3://b/audio/u1_1700000000_note.webm"

    def test_accepts_key_without_timestamp(self) -> None:
        arrival = parse_media_key("b", "audio/u1_x.xyz")
        assert arrival.owner_id == "u1"

    def test_rejects_key_outside_audio_prefix(self) -> None:
        with pytest.raises(InvalidInputError, match="not under audio/"):
            parse_media_key("b", "uploads/u1_note.webm")

    def test_rejects_key_without_owner(self) -> None:
        with pytest.raises(InvalidInputError, match="Cannot extract owner"):
            parse_media_key("b", "audio/note.webm")

    def test_rejects_missing_bucket(self) -> None:
        with pytest.raises(InvalidInputError, match="no bucket"):
            parse_media_key("", "audio/u1_note.webm")


class TestParseArtifactKey:
    def test_returns_job_name_and_record_id(self) -> None:
        job_name, record_id = parse_artifact_key(
            f"transcripts/transcription-1700000000123-{RECORD_ID}.json"
        )
        assert job_name == f"transcription-1700000000123-{RECORD_ID}"
        assert record_id == RECORD_ID

    @pytest.mark.parametrize(
        "key",
        [
            "transcripts/something-else.json",
            "transcripts/transcription-abc-1.json",
            "transcripts/transcription-123-id.txt",
        ],
    )
    def test_rejects_unexpected_names(self, key: str) -> None:
        with pytest.raises(InvalidInputError, match="Could not extract transcription id"):
            parse_artifact_key(key)


class TestAudioFormat:
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("audio/u1_1_a.webm", AudioFormat.WEBM),
            ("audio/u1_1_a.mp3", AudioFormat.MP3),
            ("audio/u1_1_a.mp4", AudioFormat.MP4),
            ("audio/u1_1_a.m4a", AudioFormat.MP4),
            ("audio/u1_1_a.WAV", AudioFormat.WAV),
        ],
    )
    def test_known_extensions(self, key: str, expected: AudioFormat) -> None:
        assert JobSpecBuilder.audio_format_for(key) == expected

    def test_unknown_extension_defaults_to_webm(self) -> None:
        assert JobSpecBuilder.audio_format_for("audio/u1_x.xyz") == AudioFormat.WEBM

    def test_missing_extension_defaults_to_webm(self) -> None:
        assert JobSpecBuilder.audio_format_for("audio/u1_recording") == AudioFormat.WEBM


class TestJobSpecBuilder:
    def test_builds_spec_from_arrival(self) -> None:
        arrival = parse_media_key("b", "audio/u1_1700000000_note.webm")

        spec = _builder().from_arrival(arrival, RECORD_ID)

        assert spec.job_name == f"transcription-1700000000500-{RECORD_ID}"
        assert spec.media_uri == "s3://b/audio/u1_1700000000_note.webm"
        assert spec.audio_format == AudioFormat.WEBM
        assert spec.language_code == "en-US"
        assert spec.output_bucket == "b"
        assert spec.output_key == f"transcripts/{spec.job_name}.json"

    def test_unknown_extension_builds_webm_spec(self) -> None:
        arrival = parse_media_key("b", "audio/u1_x.xyz")
        spec = _builder().from_arrival(arrival, RECORD_ID)
        assert spec.audio_format == AudioFormat.WEBM

    def test_uses_configured_output_bucket(self) -> None:
        arrival = parse_media_key("media", "audio/u1_1_a.mp3")
        spec = _builder(output_bucket="transcripts-bucket").from_arrival(arrival, RECORD_ID)
        assert spec.output_uri == f"s3://transcripts-bucket/transcripts/{spec.job_name}.json"

    def test_builds_spec_from_media_uri(self) -> None:
        spec = _builder().from_media_uri("s3://media/audio/u1_1_a.wav", RECORD_ID)
        assert spec.audio_format == AudioFormat.WAV
        assert spec.output_bucket == "media"

    def test_requires_record_id(self) -> None:
        arrival = parse_media_key("b", "audio/u1_1_a.mp3")
        with pytest.raises(InvalidInputError, match="record id"):
            _builder().from_arrival(arrival, "")


class TestSplitS3Uri:
    def test_splits_bucket_and_key(self) -> None:
        assert split_s3_uri("s3://b/transcripts/x.json") == ("b", "transcripts/x.json")

    @pytest.mark.parametrize("uri", ["https://b/x.json", "s3://b", "s3:///x.json"])
    def test_rejects_non_object_uris(self, uri: str) -> None:
        with pytest.raises(InvalidInputError):
            split_s3_uri(uri)
