"""ConversationStore — one conversation per subreddit, persisted as a whole."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from subreddit_insights.conversations.models import ChatMessage, Conversation

if TYPE_CHECKING:
    from subreddit_insights.storage import KeyValueStore

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "reddit_insights_conversations"

_conversation_list = TypeAdapter(list[Conversation])


class ConversationStore:
    """Keeps every conversation in memory and writes the full list on each change.

    The collection is loaded from the key-value store on first use. Whole-list
    writes are fine for a single user's history.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv
        self._conversations: list[Conversation] | None = None

    # -- Internal helpers ------------------------------------------------------

    async def _load(self) -> list[Conversation]:
        if self._conversations is not None:
            return self._conversations

        raw = await self._kv.get(CONVERSATIONS_KEY)
        conversations: list[Conversation] = []
        if raw:
            try:
                conversations = _conversation_list.validate_json(raw)
            except ValidationError:
                logger.exception("Stored conversations are unreadable; starting fresh")
        self._conversations = conversations
        return conversations

    async def _persist(self) -> None:
        conversations = await self._load()
        await self._kv.set(CONVERSATIONS_KEY, _conversation_list.dump_json(conversations).decode())

    # -- Queries ---------------------------------------------------------------

    async def list_all(self) -> list[Conversation]:
        """Return every stored conversation, oldest first."""
        return list(await self._load())

    async def get(self, conversation_id: str) -> Conversation | None:
        for conv in await self._load():
            if conv.id == conversation_id:
                return conv
        return None

    async def get_or_create(self, subreddit: str) -> Conversation:
        """Return the conversation for *subreddit*, creating and persisting it if new."""
        conversations = await self._load()
        for conv in conversations:
            if conv.subreddit == subreddit:
                return conv

        conv = Conversation(subreddit=subreddit)
        conversations.append(conv)
        await self._persist()
        logger.info("Created conversation %s for r/%s", conv.id, subreddit)
        return conv

    # -- Updates ---------------------------------------------------------------

    @staticmethod
    def append_message(conversation: Conversation, message: ChatMessage) -> Conversation:
        """Return *conversation* with *message* appended. Does not persist."""
        return conversation.with_message(message)

    @staticmethod
    def clear(conversation: Conversation) -> Conversation:
        """Return *conversation* with no messages. Does not persist."""
        return conversation.cleared()

    async def save(self, conversation: Conversation) -> None:
        """Replace the stored entry with the same id (or add it) and persist."""
        conversations = await self._load()
        for index, conv in enumerate(conversations):
            if conv.id == conversation.id:
                conversations[index] = conversation
                break
        else:
            conversations.append(conversation)
        await self._persist()

    async def clear_all(self) -> int:
        """Delete every conversation. Returns the count removed."""
        count = len(await self._load())
        self._conversations = []
        await self._kv.delete(CONVERSATIONS_KEY)
        return count
