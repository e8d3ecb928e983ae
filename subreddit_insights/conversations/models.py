"""Conversation data models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def make_message_id() -> str:
    """Generate a new message ID."""
    return f"msg_{uuid.uuid4().hex}"


def make_conversation_id() -> str:
    """Generate a new conversation ID."""
    return f"conv_{uuid.uuid4().hex}"


class ChatMessage(BaseModel):
    """A single conversation turn. Never modified after creation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=make_message_id)
    role: Literal["user", "assistant"]
    content: str
    timestamp: str = Field(default_factory=now_iso)
    sources: tuple[str, ...] = ()
    is_streaming: bool = False


class Conversation(BaseModel):
    """Chronological, append-only message history for one subreddit.

    Updates produce a new ``Conversation``; see ``with_message()`` and
    ``cleared()``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=make_conversation_id)
    subreddit: str
    messages: tuple[ChatMessage, ...] = ()
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = ""

    @model_validator(mode="before")
    @classmethod
    def _default_updated_at(cls, data: Any) -> Any:
        """A new conversation starts with matching created/updated timestamps."""
        if isinstance(data, dict) and not data.get("updated_at"):
            created = data.get("created_at") or now_iso()
            data = {**data, "created_at": created, "updated_at": created}
        return data

    def with_message(self, message: ChatMessage) -> Conversation:
        return self.model_copy(
            update={"messages": (*self.messages, message), "updated_at": now_iso()}
        )

    def cleared(self) -> Conversation:
        return self.model_copy(update={"messages": (), "updated_at": now_iso()})
