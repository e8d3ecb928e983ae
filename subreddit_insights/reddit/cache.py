"""Per-subreddit snapshot cache with a freshness window."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from pydantic import ValidationError

from subreddit_insights.config import settings
from subreddit_insights.reddit.models import RedditData

if TYPE_CHECKING:
    from subreddit_insights.storage import KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "reddit_insights_data"


def cache_key(subreddit: str) -> str:
    return f"{KEY_PREFIX}_{subreddit}"


class SnapshotCache:
    """Stores the last snapshot fetched for each subreddit.

    Snapshots older than the TTL are treated as absent but are not deleted;
    the next ``put()`` overwrites them. Loaded snapshots are also held in
    memory so repeated lookups return the same object.
    """

    def __init__(self, kv: KeyValueStore, ttl_minutes: int | None = None) -> None:
        self._kv = kv
        minutes = settings.cache_ttl_minutes if ttl_minutes is None else ttl_minutes
        self._ttl_seconds = minutes * 60
        self._memory: dict[str, RedditData] = {}

    def _is_fresh(self, data: RedditData) -> bool:
        return time.time() - data.fetched_at < self._ttl_seconds

    async def get(self, subreddit: str) -> RedditData | None:
        """Return the cached snapshot for *subreddit* if still fresh."""
        data = self._memory.get(subreddit)
        if data is None:
            raw = await self._kv.get(cache_key(subreddit))
            if not raw:
                return None
            try:
                data = RedditData.model_validate_json(raw)
            except ValidationError:
                logger.exception("Cached data for r/%s is unreadable", subreddit)
                return None
            self._memory[subreddit] = data

        if not self._is_fresh(data):
            logger.debug("Cached data for r/%s is stale", subreddit)
            return None
        return data

    async def put(self, subreddit: str, data: RedditData) -> None:
        """Store *data* for *subreddit*, replacing any previous snapshot."""
        self._memory[subreddit] = data
        await self._kv.set(cache_key(subreddit), data.model_dump_json())

    async def clear_all(self) -> int:
        """Delete every cached snapshot. Returns the number removed."""
        self._memory.clear()
        keys = await self._kv.keys(f"{KEY_PREFIX}_")
        for key in keys:
            await self._kv.delete(key)
        return len(keys)
