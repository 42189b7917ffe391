from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SLACKBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "https://slack.com/api"
    timeout_seconds: float = 10.0
    socket_open_timeout_seconds: float = 10.0
    max_message_bytes: int = 16000
    default_slackbot_channel: str = "#general"

    token: str | None = None
    webhook: str | None = None
    slackbot: str | None = None


settings = Settings()
