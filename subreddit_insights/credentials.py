"""API credentials and their persistence."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError

from subreddit_insights.config import settings

if TYPE_CHECKING:
    from subreddit_insights.config import Settings
    from subreddit_insights.storage import KeyValueStore

logger = logging.getLogger(__name__)

CONFIG_KEY = "reddit_insights_config"


class Credentials(BaseModel):
    """Reddit app id/secret and Gemini API key.

    The persisted and in-memory representations are identical.
    """

    model_config = ConfigDict(frozen=True)

    reddit_client_id: str
    reddit_client_secret: str
    gemini_api_key: str

    def is_complete(self) -> bool:
        return all(
            value.strip()
            for value in (self.reddit_client_id, self.reddit_client_secret, self.gemini_api_key)
        )


class CredentialStore:
    """Loads and saves the credential record.

    There is no built-in fallback secret: when nothing is persisted and the
    environment does not provide all three values, ``load()`` returns None
    and the caller must treat the app as unconfigured.
    """

    def __init__(self, kv: KeyValueStore, app_settings: Settings | None = None) -> None:
        self._kv = kv
        self._settings = app_settings or settings

    async def load(self) -> Credentials | None:
        """Return persisted credentials, else environment-seeded ones, else None."""
        raw = await self._kv.get(CONFIG_KEY)
        if raw:
            try:
                creds = Credentials.model_validate_json(raw)
            except ValidationError:
                logger.exception("Stored credentials are unreadable; ignoring them")
            else:
                if creds.is_complete():
                    return creds
                logger.warning("Stored credentials are incomplete; ignoring them")

        if self._settings.has_seed_credentials():
            logger.info("Using credentials from environment")
            return Credentials(
                reddit_client_id=self._settings.reddit_client_id,
                reddit_client_secret=self._settings.reddit_client_secret,
                gemini_api_key=self._settings.gemini_api_key,
            )
        return None

    async def save(self, creds: Credentials) -> None:
        """Persist *creds*. Raises ``ValueError`` if any field is blank."""
        if not creds.is_complete():
            msg = "All credential fields must be non-empty"
            raise ValueError(msg)
        await self._kv.set(CONFIG_KEY, creds.model_dump_json())
        logger.info("Saved credentials")
