"""Tests for GeminiClient."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from subreddit_insights.config import Settings
from subreddit_insights.conversations.models import ChatMessage
from subreddit_insights.llm.client import GeminiClient, GenerationError
from subreddit_insights.reddit.models import RedditData, RedditPost, SubredditInfo

ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"


def _mock_httpx_client(mock_client_cls: MagicMock, response: httpx.Response) -> AsyncMock:
    """Wire up an AsyncClient context-manager mock that returns *response*."""
    mock_client = AsyncMock()
    mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


def _gemini_response(body, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        json=body,
        request=httpx.Request("POST", ENDPOINT),
    )


def _text_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _make_data() -> RedditData:
    return RedditData(
        subreddit=SubredditInfo(name="t5_x", display_name="startups"),
        posts=(RedditPost(id="p1", title="Need a CRM for plumbers"),),
        fetched_at=0.0,
    )


@pytest.fixture
def gemini() -> GeminiClient:
    return GeminiClient("gkey", Settings())


async def test_generate_response_returns_text(gemini: GeminiClient) -> None:
    with patch("subreddit_insights.llm.client.httpx.AsyncClient") as mock_cls:
        _mock_httpx_client(mock_cls, _gemini_response(_text_body("Insight!")))
        result = await gemini.generate_response("What now?", _make_data(), [])

    assert result == "Insight!"


async def test_request_shape(gemini: GeminiClient) -> None:
    history = [ChatMessage(role="user", content="What now?")]
    with patch("subreddit_insights.llm.client.httpx.AsyncClient") as mock_cls:
        client = _mock_httpx_client(mock_cls, _gemini_response(_text_body("ok")))
        await gemini.generate_response("What now?", _make_data(), history)

    args, kwargs = client.post.call_args
    assert args[0] == ENDPOINT
    assert kwargs["params"] == {"key": "gkey"}
    payload = kwargs["json"]
    assert payload["generationConfig"] == {
        "temperature": 0.7,
        "topP": 0.8,
        "topK": 40,
        "maxOutputTokens": 2048,
    }
    prompt = payload["contents"][0]["parts"][0]["text"]
    assert "Need a CRM for plumbers" in prompt
    assert "USER: What now?" in prompt
    assert "USER QUESTION: What now?" in prompt


async def test_uses_configured_model() -> None:
    client = GeminiClient("k", Settings(gemini_model="gemini-1.5-flash"))
    assert client.endpoint.endswith("/gemini-1.5-flash:generateContent")


async def test_http_error_status_raises(gemini: GeminiClient) -> None:
    with patch("subreddit_insights.llm.client.httpx.AsyncClient") as mock_cls:
        _mock_httpx_client(mock_cls, _gemini_response({"error": "quota"}, status_code=429))
        with pytest.raises(GenerationError, match="429"):
            await gemini.complete_text("prompt")


async def test_missing_text_raises(gemini: GeminiClient) -> None:
    with patch("subreddit_insights.llm.client.httpx.AsyncClient") as mock_cls:
        _mock_httpx_client(mock_cls, _gemini_response({"candidates": []}))
        with pytest.raises(GenerationError, match="No response"):
            await gemini.complete_text("prompt")


async def test_empty_text_raises(gemini: GeminiClient) -> None:
    with patch("subreddit_insights.llm.client.httpx.AsyncClient") as mock_cls:
        _mock_httpx_client(mock_cls, _gemini_response(_text_body("")))
        with pytest.raises(GenerationError):
            await gemini.complete_text("prompt")


async def test_network_error_raises_without_retry(gemini: GeminiClient) -> None:
    with patch("subreddit_insights.llm.client.httpx.AsyncClient") as mock_cls:
        client = _mock_httpx_client(mock_cls, _gemini_response(_text_body("unused")))
        client.post.side_effect = httpx.ConnectError("down")
        with pytest.raises(GenerationError):
            await gemini.complete_text("prompt")

    assert client.post.call_count == 1
