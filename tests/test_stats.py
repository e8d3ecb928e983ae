"""Tests for subreddit summary stats."""

from datetime import date

from subreddit_insights.reddit.models import RedditData, RedditPost, SubredditInfo
from subreddit_insights.reddit.stats import SubredditStats, format_number


def test_format_number() -> None:
    assert format_number(999) == "999"
    assert format_number(1500) == "1.5K"
    assert format_number(2_340_000) == "2.3M"


def test_from_data() -> None:
    data = RedditData(
        subreddit=SubredditInfo(
            name="t5_x",
            display_name="startups",
            subscribers=500000,
            active_user_count=1200,
            created_utc=1_200_000_000.0,
            public_description="Startup talk",
        ),
        posts=(
            RedditPost(id="a", title="A", score=10, num_comments=4),
            RedditPost(id="b", title="B", score=21, num_comments=6),
        ),
        fetched_at=0.0,
    )
    stats = SubredditStats.from_data(data)

    assert stats.post_count == 2
    assert stats.average_score == 16
    assert stats.total_comments == 10
    assert stats.created == date(2008, 1, 10)
    assert "Subscribers: 500.0K" in stats.to_lines()
    assert stats.to_lines()[-1] == "Startup talk"


def test_no_posts() -> None:
    data = RedditData(subreddit=SubredditInfo(name="x", display_name="x"), fetched_at=0.0)
    stats = SubredditStats.from_data(data)
    assert stats.average_score == 0
    assert stats.total_comments == 0
