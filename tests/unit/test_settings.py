import pytest
from pydantic import ValidationError

from medtranscribe.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_watch_budget(self) -> None:
        s = Settings()
        assert s.watch_poll_interval_seconds == 2.0
        assert s.watch_max_attempts == 150
        assert s.watch_ceiling_seconds == 300.0

    def test_default_language_code(self) -> None:
        s = Settings()
        assert s.language_code == "en-US"

    def test_default_annotation_provider(self) -> None:
        s = Settings()
        assert s.annotation_provider == "comprehend_medical"

    def test_default_max_speaker_labels(self) -> None:
        s = Settings()
        assert s.max_speaker_labels == 4


class TestStaleAfter:
    def test_uses_reconcile_setting_when_longer_than_ceiling(self) -> None:
        s = Settings(reconcile_stale_after_seconds=1800)
        assert s.stale_after_seconds == 1800.0

    def test_never_below_watch_ceiling(self) -> None:
        s = Settings(reconcile_stale_after_seconds=10)
        assert s.stale_after_seconds == 300.0


class TestSettingsFromEnv:
    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_queue_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUEUE_URL", "https://sqs.us-east-1.amazonaws.com/1/events")
        s = Settings()
        assert s.queue_url == "https://sqs.us-east-1.amazonaws.com/1/events"

    def test_loads_watch_max_attempts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WATCH_MAX_ATTEMPTS", "10")
        s = Settings()
        assert s.watch_max_attempts == 10


class TestSettingsValidation:
    def test_invalid_db_port_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_poll_interval_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WATCH_POLL_INTERVAL_SECONDS", "soon")
        with pytest.raises(ValidationError):
            Settings()
