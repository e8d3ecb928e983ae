"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Subreddit Insights configuration. All values come from environment variables."""

    # Credentials (seed values; persisted credentials take priority)
    reddit_client_id: str = Field(default="")
    reddit_client_secret: str = Field(default="")
    gemini_api_key: str = Field(default="")

    # Reddit
    reddit_auth_url: str = Field(default="https://www.reddit.com/api/v1/access_token")
    reddit_api_url: str = Field(default="https://oauth.reddit.com")
    reddit_user_agent: str = Field(default="RedditInsights/1.0")

    # Gemini
    gemini_api_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models"
    )
    gemini_model: str = Field(default="gemini-pro")

    # Network
    http_timeout_seconds: float = Field(default=20.0)

    # Cache
    cache_ttl_minutes: int = Field(default=30)

    # Database
    database_path: Path = Field(default=Path("data/subreddit_insights.db"))

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def has_seed_credentials(self) -> bool:
        """True when all three credential values are present in the environment."""
        return all(
            value.strip()
            for value in (self.reddit_client_id, self.reddit_client_secret, self.gemini_api_key)
        )


settings = Settings()
