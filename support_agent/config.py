from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    # OpenAI settings
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4"
    OPENAI_MAX_TOKENS: int = 500
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_TIMEOUT_SECONDS: float = 30.0

    # Slack settings
    SLACK_BOT_TOKEN: str | None = None
    SLACK_SUPPORT_CHANNEL_ID: str | None = None

    # Links rendered as Slack buttons
    REPLY_FORM_URL: str | None = None
    CONVERSATION_URL: str | None = None

    # Google OAuth settings (Gmail + Docs share one refresh token)
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_REFRESH_TOKEN: str | None = None

    # Google Doc that receives the ticket log
    GOOGLE_DOC_ID: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def google_configured(self) -> bool:
        """True when a refresh token can be exchanged for access tokens."""
        return bool(
            self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET and self.GOOGLE_REFRESH_TOKEN
        )

    def slack_configured(self) -> bool:
        return bool(self.SLACK_BOT_TOKEN and self.SLACK_SUPPORT_CHANNEL_ID)


settings = Settings()
