"""Summary numbers for a subreddit snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from subreddit_insights.reddit.models import RedditData


def format_number(num: int) -> str:
    """Format a count as ``1.2M``, ``3.4K`` or the plain number."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return str(num)


@dataclass(frozen=True)
class SubredditStats:
    """At-a-glance numbers for one snapshot."""

    display_name: str
    subscribers: int
    active_users: int
    created: date
    post_count: int
    average_score: int
    total_comments: int
    public_description: str = ""

    @classmethod
    def from_data(cls, data: RedditData) -> SubredditStats:
        posts = data.posts
        average = round(sum(p.score for p in posts) / len(posts)) if posts else 0
        info = data.subreddit
        return cls(
            display_name=info.display_name,
            subscribers=info.subscribers,
            active_users=info.active_user_count,
            created=datetime.fromtimestamp(info.created_utc, tz=UTC).date(),
            post_count=len(posts),
            average_score=average,
            total_comments=sum(p.num_comments for p in posts),
            public_description=info.public_description,
        )

    def to_lines(self) -> list[str]:
        lines = [
            f"r/{self.display_name}",
            f"Subscribers: {format_number(self.subscribers)}",
            f"Active users: {format_number(self.active_users)}",
            f"Created: {self.created.isoformat()}",
            f"Hot posts: {self.post_count} (avg score {self.average_score})",
            f"Total comments: {format_number(self.total_comments)}",
        ]
        if self.public_description:
            lines.append(self.public_description)
        return lines
