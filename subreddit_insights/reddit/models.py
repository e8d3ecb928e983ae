"""Data models for subreddit snapshots."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

# Comment bodies Reddit substitutes for deleted or moderator-removed content
REMOVED_MARKERS = frozenset({"[deleted]", "[removed]"})


class SubredditInfo(BaseModel):
    """Subreddit metadata as of fetch time."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    subscribers: int = 0
    active_user_count: int = 0
    description: str = ""
    created_utc: float = 0.0
    public_description: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> SubredditInfo:
        """Map the ``/about`` payload, defaulting optional counters and text."""
        name = data.get("name") or ""
        return cls(
            name=name,
            display_name=data.get("display_name") or name,
            subscribers=data.get("subscribers") or 0,
            active_user_count=data.get("active_user_count") or 0,
            description=data.get("description") or "",
            created_utc=data.get("created_utc") or 0.0,
            public_description=data.get("public_description") or "",
        )


class RedditPost(BaseModel):
    """A single post from a listing."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    selftext: str = ""
    author: str = ""
    created_utc: float = 0.0
    score: int = 0
    num_comments: int = 0
    url: str = ""
    permalink: str = ""
    subreddit: str = ""
    is_self: bool = False
    domain: str = ""
    upvote_ratio: float = 0.0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RedditPost:
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            selftext=data.get("selftext") or "",
            author=data.get("author") or "",
            created_utc=data.get("created_utc") or 0.0,
            score=data.get("score") or 0,
            num_comments=data.get("num_comments") or 0,
            url=data.get("url") or "",
            permalink=data.get("permalink") or "",
            subreddit=data.get("subreddit") or "",
            is_self=bool(data.get("is_self", False)),
            domain=data.get("domain") or "",
            upvote_ratio=data.get("upvote_ratio") or 0.0,
        )


class RedditComment(BaseModel):
    """A top-level comment on a post."""

    model_config = ConfigDict(frozen=True)

    id: str
    body: str
    author: str = ""
    created_utc: float = 0.0
    score: int = 0
    parent_id: str = ""
    permalink: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RedditComment:
        return cls(
            id=data.get("id", ""),
            body=data.get("body", ""),
            author=data.get("author") or "",
            created_utc=data.get("created_utc") or 0.0,
            score=data.get("score") or 0,
            parent_id=data.get("parent_id") or "",
            permalink=data.get("permalink") or "",
        )


class RedditData(BaseModel):
    """Everything fetched for one subreddit at one instant.

    Posts keep the API's rank order. Comments are grouped by source post,
    then by rank. A snapshot is replaced wholesale, never patched.
    """

    model_config = ConfigDict(frozen=True)

    subreddit: SubredditInfo
    posts: tuple[RedditPost, ...] = ()
    comments: tuple[RedditComment, ...] = ()
    fetched_at: float
