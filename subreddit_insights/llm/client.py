"""Async Gemini client — single-shot generation over the REST API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from subreddit_insights.config import settings
from subreddit_insights.llm.prompt import build_prompt

if TYPE_CHECKING:
    from collections.abc import Sequence

    from subreddit_insights.config import Settings
    from subreddit_insights.conversations.models import ChatMessage
    from subreddit_insights.reddit.models import RedditData

logger = logging.getLogger(__name__)

GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.7,
    "topP": 0.8,
    "topK": 40,
    "maxOutputTokens": 2048,
}


class GenerationError(Exception):
    """Raised when the model call fails or returns no text."""


def _extract_text(data: Any) -> str | None:
    """Pull ``candidates[0].content.parts[0].text`` out of a response body."""
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None


class GeminiClient:
    """Sends one prompt per question. Never retries."""

    def __init__(self, api_key: str, app_settings: Settings | None = None) -> None:
        self._api_key = api_key
        self._settings = app_settings or settings

    @property
    def endpoint(self) -> str:
        return f"{self._settings.gemini_api_url}/{self._settings.gemini_model}:generateContent"

    async def complete_text(self, prompt: str) -> str:
        """Send *prompt* and return the generated text.

        Raises ``GenerationError`` on transport errors, non-200 responses,
        or a response without generated text.
        """
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": GENERATION_CONFIG,
        }
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout_seconds) as client:
                resp = await client.post(
                    self.endpoint,
                    params={"key": self._api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.HTTPError as exc:
            logger.exception("Gemini request failed")
            msg = f"Gemini request failed: {exc}"
            raise GenerationError(msg) from exc

        if resp.status_code != 200:
            logger.error("Gemini API error: status=%d body=%s", resp.status_code, resp.text[:200])
            msg = f"Gemini API returned {resp.status_code}"
            raise GenerationError(msg)

        try:
            data = resp.json()
        except ValueError as exc:
            msg = "Gemini response was not valid JSON"
            raise GenerationError(msg) from exc

        text = _extract_text(data)
        if not text:
            msg = "No response generated"
            raise GenerationError(msg)
        return text

    async def generate_response(
        self,
        question: str,
        data: RedditData,
        history: Sequence[ChatMessage],
    ) -> str:
        """Answer *question* about *data*, given the conversation so far."""
        prompt = build_prompt(question, data, history)
        logger.debug("Prompt is %d characters", len(prompt))
        return await self.complete_text(prompt)
