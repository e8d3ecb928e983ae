"""Tests for the terminal command handler."""

import time
from unittest.mock import AsyncMock, patch

import pytest

from subreddit_insights.assistant import InsightsAssistant
from subreddit_insights.llm.client import GeminiClient, GenerationError
from subreddit_insights.main import HELP_TEXT, handle_line
from subreddit_insights.reddit.client import RedditClient
from subreddit_insights.reddit.models import RedditData, RedditPost, SubredditInfo


def _make_data(name: str) -> RedditData:
    return RedditData(
        subreddit=SubredditInfo(name="t5_x", display_name=name, subscribers=2500),
        posts=(RedditPost(id="p1", title="Pricing help", score=12, num_comments=3),),
        fetched_at=time.time(),
    )


def _answers(values: list[str]) -> AsyncMock:
    """A stand-in for the input prompt that replies with *values* in order."""
    return AsyncMock(side_effect=values)


@pytest.fixture
def assistant(kv, app_settings) -> InsightsAssistant:
    a = InsightsAssistant(kv, app_settings)
    a.reddit = AsyncMock(spec=RedditClient)
    a.reddit.validate_subreddit.return_value = True
    a.reddit.fetch_subreddit_data.side_effect = _make_data
    a.gemini = AsyncMock(spec=GeminiClient)
    a.gemini.generate_response.return_value = "Plain answer"
    return a


class TestCommands:
    async def test_quit_returns_none(self, assistant) -> None:
        assert await handle_line(assistant, "/quit") is None
        assert await handle_line(assistant, "/exit") is None

    async def test_blank_line(self, assistant) -> None:
        assert await handle_line(assistant, "   ") == ""

    async def test_help(self, assistant) -> None:
        assert await handle_line(assistant, "/help") == HELP_TEXT

    async def test_suggest_lists_subreddits_and_questions(self, assistant) -> None:
        output = await handle_line(assistant, "/suggest")
        assert "r/startups" in output
        assert "What are the main pain points discussed in this subreddit?" in output

    async def test_unknown_command(self, assistant) -> None:
        output = await handle_line(assistant, "/frobnicate")
        assert output.startswith("Unknown command /frobnicate")

    async def test_stats_without_selection(self, assistant) -> None:
        assert await handle_line(assistant, "/stats") == "No subreddit selected."


class TestSelection:
    async def test_select_reports_ready(self, assistant) -> None:
        output = await handle_line(assistant, "/r r/startups")
        assert output == "Ready to analyze r/startups (0 messages in history)."
        assert assistant.selected_subreddit == "startups"

    async def test_select_unknown_subreddit(self, assistant) -> None:
        assistant.reddit.validate_subreddit.return_value = False
        output = await handle_line(assistant, "/r nopenope")
        assert output == "Error: r/nopenope was not found or is not accessible."

    async def test_stats_after_selection(self, assistant) -> None:
        await handle_line(assistant, "/r startups")
        output = await handle_line(assistant, "/stats")
        assert "Subscribers: 2.5K" in output


class TestQuestions:
    async def test_question_before_selection(self, assistant) -> None:
        output = await handle_line(assistant, "What should I build?")
        assert output == "Error: Select a subreddit first."

    async def test_answer_with_sources(self, assistant) -> None:
        assistant.gemini.generate_response.return_value = (
            "Invoicing is a pain.\nr/startups post: Pricing help"
        )
        await handle_line(assistant, "/r startups")
        output = await handle_line(assistant, "What hurts?")

        assert output.startswith("Invoicing is a pain.")
        assert output.endswith("Sources:\n- r/startups post: Pricing help")

    async def test_answer_without_sources(self, assistant) -> None:
        await handle_line(assistant, "/r startups")
        assert await handle_line(assistant, "What hurts?") == "Plain answer"

    async def test_generation_failure(self, assistant) -> None:
        assistant.gemini.generate_response.side_effect = GenerationError("boom")
        await handle_line(assistant, "/r startups")
        output = await handle_line(assistant, "What hurts?")
        assert output == "Error: Failed to generate AI response. Please try again."

    async def test_clear_reports_count(self, assistant) -> None:
        await handle_line(assistant, "/r startups")
        await handle_line(assistant, "What hurts?")
        assert await handle_line(assistant, "/clear") == "Cleared 2 messages. Starting fresh."
        assert assistant.current_conversation.messages == ()


class TestSettings:
    async def test_config_saves_credentials(self, assistant) -> None:
        with patch("subreddit_insights.main._prompt", _answers(["cid", "secret", "gkey"])):
            output = await handle_line(assistant, "/config")

        assert output == "Credentials saved."
        assert assistant.credentials.reddit_client_id == "cid"
        assert await assistant.credential_store.load() == assistant.credentials

    async def test_config_rejects_blank_field(self, assistant) -> None:
        with patch("subreddit_insights.main._prompt", _answers(["cid", "", "gkey"])):
            output = await handle_line(assistant, "/config")

        assert output == "All credential fields must be non-empty"
        assert await assistant.credential_store.load() is None

    async def test_reset(self, assistant) -> None:
        await handle_line(assistant, "/r startups")
        output = await handle_line(assistant, "/reset")
        assert output == "All conversations and cached data deleted."
        assert assistant.selected_subreddit == ""
