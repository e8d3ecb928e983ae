"""Async Reddit API client — app-only OAuth2 with a cached bearer token."""

from __future__ import annotations

import base64
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from subreddit_insights.config import settings
from subreddit_insights.reddit.models import (
    REMOVED_MARKERS,
    RedditComment,
    RedditData,
    RedditPost,
    SubredditInfo,
)

if TYPE_CHECKING:
    from subreddit_insights.config import Settings

logger = logging.getLogger(__name__)

# Refresh the token this many seconds before Reddit says it expires
TOKEN_EXPIRY_MARGIN = 60

HOT_POSTS_LIMIT = 25
COMMENTED_POSTS_LIMIT = 10
COMMENTS_PER_POST = 5


class AuthenticationError(Exception):
    """Raised when the client-credentials token exchange fails."""


class FetchError(Exception):
    """Raised when subreddit metadata or its listing cannot be fetched."""

    def __init__(self, subreddit: str) -> None:
        super().__init__(f"Failed to fetch data for r/{subreddit}")
        self.subreddit = subreddit


class RedditClient:
    """Reads subreddit metadata, hot posts and top comments.

    Uses the application-only ``client_credentials`` grant. The access token
    is kept in memory only and re-requested once it is within
    ``TOKEN_EXPIRY_MARGIN`` seconds of expiry.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        app_settings: Settings | None = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._settings = app_settings or settings
        self._access_token: str | None = None
        self._token_expiry = 0.0

    def _timeout(self) -> float:
        return self._settings.http_timeout_seconds

    # -- Auth ------------------------------------------------------------------

    async def get_token(self) -> str:
        """Return a valid bearer token, exchanging credentials if needed."""
        if self._access_token and time.time() < self._token_expiry - TOKEN_EXPIRY_MARGIN:
            return self._access_token

        basic = base64.b64encode(
            f"{self._client_id}:{self._client_secret}".encode()
        ).decode()
        headers = {
            "Authorization": f"Basic {basic}",
            "Content-Type": "application/x-www-form-urlencoded",
            "User-Agent": self._settings.reddit_user_agent,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout()) as client:
                resp = await client.post(
                    self._settings.reddit_auth_url,
                    headers=headers,
                    data={"grant_type": "client_credentials"},
                )
        except httpx.HTTPError as exc:
            msg = f"Reddit token request failed: {exc}"
            raise AuthenticationError(msg) from exc

        if resp.status_code != 200:
            msg = f"Reddit authentication failed ({resp.status_code}): {resp.text[:200]}"
            raise AuthenticationError(msg)

        try:
            data = resp.json()
            token = data["access_token"]
            expires_in = float(data["expires_in"])
        except (ValueError, KeyError, TypeError) as exc:
            msg = "Reddit token response was malformed"
            raise AuthenticationError(msg) from exc

        if not token:
            msg = "Reddit token response did not include an access token"
            raise AuthenticationError(msg)

        self._access_token = token
        self._token_expiry = time.time() + expires_in
        logger.info("Obtained Reddit access token (expires in %ds)", int(expires_in))
        return token

    async def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """GET an OAuth API endpoint and return its decoded JSON."""
        token = await self.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "User-Agent": self._settings.reddit_user_agent,
        }
        async with httpx.AsyncClient(timeout=self._timeout()) as client:
            resp = await client.get(
                f"{self._settings.reddit_api_url}{endpoint}",
                headers=headers,
                params=params,
            )
        resp.raise_for_status()
        return resp.json()

    # -- Public API ------------------------------------------------------------

    async def validate_subreddit(self, subreddit: str) -> bool:
        """Return True if the subreddit exists and is readable. Never raises."""
        try:
            await self._request(f"/r/{subreddit}/about")
        except Exception as exc:
            logger.info("Subreddit r/%s failed validation: %s", subreddit, exc)
            return False
        return True

    async def fetch_subreddit_data(self, subreddit: str) -> RedditData:
        """Fetch metadata, hot posts and top comments for *subreddit*.

        Posts and comments are fetched one request at a time. A failure on
        the metadata or listing request raises ``FetchError``; a failure on
        one post's comments is logged and that post is skipped.
        """
        try:
            about = await self._request(f"/r/{subreddit}/about")
            info = SubredditInfo.from_api(about["data"])

            listing = await self._request(
                f"/r/{subreddit}/hot", params={"limit": HOT_POSTS_LIMIT}
            )
            posts = [
                RedditPost.from_api(child["data"])
                for child in listing["data"]["children"]
            ]
        except AuthenticationError:
            raise
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.exception("Failed to fetch subreddit data for r/%s", subreddit)
            raise FetchError(subreddit) from exc

        comments: list[RedditComment] = []
        for post in posts[:COMMENTED_POSTS_LIMIT]:
            try:
                comments.extend(await self._fetch_comments(post))
            except Exception:
                logger.warning("Failed to fetch comments for post %s", post.id, exc_info=True)

        logger.info(
            "Fetched r/%s: %d posts, %d comments", subreddit, len(posts), len(comments)
        )
        return RedditData(
            subreddit=info,
            posts=tuple(posts),
            comments=tuple(comments),
            fetched_at=time.time(),
        )

    async def _fetch_comments(self, post: RedditPost) -> list[RedditComment]:
        """Return the top comments on *post*, dropping deleted/removed ones."""
        data = await self._request(
            post.permalink, params={"limit": COMMENTS_PER_POST, "sort": "top"}
        )
        children = data[1].get("data", {}).get("children", []) if len(data) > 1 else []

        comments = []
        for child in children:
            comment_data = child.get("data") or {}
            body = comment_data.get("body")
            if not body or body in REMOVED_MARKERS:
                continue
            comments.append(RedditComment.from_api(comment_data))
        return comments
