from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "medtranscribe"
    db_username: str = "medtranscribe"
    db_password: str = "secret"

    aws_region: str = "us-east-1"
    media_bucket: str = ""
    transcript_output_bucket: str = ""

    language_code: str = "en-US"
    show_speaker_labels: bool = True
    max_speaker_labels: int = 4

    watch_poll_interval_seconds: float = 2.0
    watch_max_attempts: int = 150

    queue_url: str = ""
    queue_wait_seconds: int = 20
    queue_max_messages: int = 10
    max_message_attempts: int = 3
    reconcile_interval_seconds: int = 60
    reconcile_stale_after_seconds: int = 1800

    artifact_http_timeout_seconds: int = 30

    annotation_provider: str = "comprehend_medical"
    annotation_openai_api_key: str = ""
    annotation_openai_model_name: str = ""
    annotation_openai_base_url: str | None = None
    annotation_openai_timeout_seconds: int = 30

    @property
    def watch_ceiling_seconds(self) -> float:
        """Longest time an active watch may wait before giving up."""
        return self.watch_poll_interval_seconds * self.watch_max_attempts

    @property
    def stale_after_seconds(self) -> float:
        """Age after which a processing record is reconciled; never below the watch ceiling."""
        return max(float(self.reconcile_stale_after_seconds), self.watch_ceiling_seconds)
