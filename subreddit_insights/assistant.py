"""InsightsAssistant: ties credentials, Reddit fetching, caching and the LLM together."""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from subreddit_insights.config import settings
from subreddit_insights.conversations.models import ChatMessage
from subreddit_insights.conversations.store import ConversationStore
from subreddit_insights.credentials import CredentialStore
from subreddit_insights.llm.client import GeminiClient, GenerationError
from subreddit_insights.llm.prompt import extract_sources
from subreddit_insights.reddit.cache import SnapshotCache
from subreddit_insights.reddit.client import AuthenticationError, FetchError, RedditClient
from subreddit_insights.reddit.stats import SubredditStats

if TYPE_CHECKING:
    from subreddit_insights.config import Settings
    from subreddit_insights.conversations.models import Conversation
    from subreddit_insights.credentials import Credentials
    from subreddit_insights.reddit.models import RedditData
    from subreddit_insights.storage import KeyValueStore

logger = logging.getLogger(__name__)

POPULAR_BUSINESS_SUBREDDITS = [
    "entrepreneur",
    "startups",
    "smallbusiness",
    "SaaS",
    "marketing",
    "webdev",
    "freelance",
    "business",
    "Entrepreneur",
    "digitalnomad",
]

EXAMPLE_QUESTIONS = [
    "What are the main pain points discussed in this subreddit?",
    "What business opportunities can you identify from recent posts?",
    "Who are the potential customers based on the discussions?",
    "What SaaS ideas emerge from the problems mentioned?",
    "What are people willing to pay for based on the conversations?",
]

NOT_CONFIGURED_ERROR = "API credentials are not configured. Add them in settings first."
GENERATION_FAILED_ERROR = "Failed to generate AI response. Please try again."
SAVE_FAILED_ERROR = "Failed to save the conversation. Please try again."


class AssistantState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    GENERATING = "generating"


def normalize_subreddit(name: str) -> str:
    """Strip whitespace and a leading ``r/`` or ``/r/``."""
    name = name.strip()
    for prefix in ("/r/", "r/"):
        if name.lower().startswith(prefix):
            name = name[len(prefix) :]
            break
    return name.strip("/ ")


class InsightsAssistant:
    """Owns the active subreddit, its snapshot and its conversation.

    This is the only layer that turns failures into user-facing text
    (``self.error``). At most one fetch and one generation run at a time;
    overlapping calls are rejected rather than queued.

    A generation that finishes after the user switched subreddits is saved
    to the conversation it was asked in, not the currently active one.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        app_settings: Settings | None = None,
    ) -> None:
        self._settings = app_settings or settings
        self.credential_store = CredentialStore(kv, self._settings)
        self.cache = SnapshotCache(kv, self._settings.cache_ttl_minutes)
        self.conversations = ConversationStore(kv)

        self.credentials: Credentials | None = None
        self.reddit: RedditClient | None = None
        self.gemini: GeminiClient | None = None

        self.selected_subreddit = ""
        self.reddit_data: RedditData | None = None
        self.current_conversation: Conversation | None = None
        self.is_loading_data = False
        self.is_generating = False
        self.error: str | None = None

        self._validation_task: asyncio.Task[bool] | None = None

    # -- Setup -----------------------------------------------------------------

    async def start(self) -> None:
        """Load credentials and stored conversations."""
        creds = await self.credential_store.load()
        if creds is None:
            logger.warning("No credentials configured; network features are disabled")
        else:
            self._init_services(creds)
        conversations = await self.conversations.list_all()
        logger.info("Loaded %d saved conversations", len(conversations))

    def _init_services(self, creds: Credentials) -> None:
        self.credentials = creds
        self.reddit = RedditClient(
            creds.reddit_client_id, creds.reddit_client_secret, self._settings
        )
        self.gemini = GeminiClient(creds.gemini_api_key, self._settings)

    async def update_credentials(self, creds: Credentials) -> None:
        """Persist new credentials and rebuild the API clients."""
        await self.credential_store.save(creds)
        self._init_services(creds)
        self.error = None

    @property
    def is_configured(self) -> bool:
        return self.reddit is not None and self.gemini is not None

    @property
    def is_validating(self) -> bool:
        return self._validation_task is not None and not self._validation_task.done()

    @property
    def state(self) -> AssistantState:
        if self.is_loading_data:
            return AssistantState.LOADING
        if self.is_generating:
            return AssistantState.GENERATING
        if self.current_conversation is not None and self.reddit_data is not None:
            return AssistantState.READY
        return AssistantState.IDLE

    # -- Validation ------------------------------------------------------------

    async def _run_validation(self, client: RedditClient, subreddit: str, delay: float) -> bool:
        if delay > 0:
            await asyncio.sleep(delay)
        valid = await client.validate_subreddit(subreddit)
        if valid:
            self.error = None
        return valid

    async def _validate(self, subreddit: str, delay: float) -> bool | None:
        """Run one validation as a task. Returns None if a newer one superseded it."""
        if self._validation_task is not None and not self._validation_task.done():
            self._validation_task.cancel()
        if not subreddit:
            self._validation_task = None
            return False
        if self.reddit is None:
            self._validation_task = None
            self.error = NOT_CONFIGURED_ERROR
            return False

        task = asyncio.create_task(self._run_validation(self.reddit, subreddit, delay))
        self._validation_task = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.debug("Validation of r/%s was superseded", subreddit)
            return None

    async def validate_subreddit(self, name: str, delay: float = 0.0) -> bool:
        """Check that a subreddit exists, superseding any pending check.

        With *delay* the probe waits first, so a burst of calls (e.g. one
        per keystroke) only reaches Reddit for the last one. A superseded
        check returns False and leaves ``error`` alone.
        """
        return bool(await self._validate(normalize_subreddit(name), delay))

    # -- Subreddit selection ---------------------------------------------------

    async def select_subreddit(self, name: str) -> bool:
        """Make *name* the active subreddit, fetching it unless cached.

        Returns True once a snapshot and conversation are bound. On failure
        ``self.error`` is set and the previous selection is kept.
        """
        subreddit = normalize_subreddit(name)
        if not subreddit:
            self.error = "Enter a subreddit name."
            return False
        if self.is_loading_data:
            logger.warning("Ignoring selection of r/%s: a fetch is already running", subreddit)
            return False

        self.error = None
        if self.reddit is None:
            self.error = NOT_CONFIGURED_ERROR
            return False

        data = await self.cache.get(subreddit)
        if data is not None:
            logger.info("Using cached data for r/%s", subreddit)
        else:
            self.is_loading_data = True
            try:
                data = await self.reddit.fetch_subreddit_data(subreddit)
            except AuthenticationError:
                logger.exception("Reddit authentication failed")
                self.error = "Reddit authentication failed. Check your API credentials."
                return False
            except FetchError:
                self.error = f"Failed to fetch data for r/{subreddit}. Please try again."
                return False
            except Exception:
                logger.exception("Unexpected error fetching r/%s", subreddit)
                self.error = f"Failed to fetch data for r/{subreddit}. Please try again."
                return False
            finally:
                self.is_loading_data = False
            await self.cache.put(subreddit, data)

        self.selected_subreddit = subreddit
        self.reddit_data = data
        self.current_conversation = await self.conversations.get_or_create(subreddit)
        return True

    async def validate_and_select(self, name: str, delay: float = 0.0) -> bool:
        """Validate *name*, then select it if it exists."""
        subreddit = normalize_subreddit(name)
        if not subreddit:
            self.error = "Enter a subreddit name."
            return False
        valid = await self._validate(subreddit, delay)
        if valid is None:
            return False
        if not valid:
            if not self.error:
                self.error = f"r/{subreddit} was not found or is not accessible."
            return False
        return await self.select_subreddit(subreddit)

    # -- Conversation ----------------------------------------------------------

    async def ask(self, question: str) -> ChatMessage | None:
        """Ask about the active subreddit. Returns the assistant's reply, or None.

        The user's message is saved before the model is called and stays in
        the history even if generation fails. ``is_generating`` stays set
        until the reply has been saved.
        """
        question = question.strip()
        if not question:
            return None
        if self.is_generating:
            logger.warning("Ignoring question: a response is already being generated")
            return None
        if self.current_conversation is None or self.reddit_data is None:
            self.error = "Select a subreddit first."
            return None
        if self.gemini is None:
            self.error = NOT_CONFIGURED_ERROR
            return None

        self.is_generating = True
        self.error = None
        try:
            return await self._answer(question, self.current_conversation, self.reddit_data)
        finally:
            self.is_generating = False

    async def _answer(
        self, question: str, conversation: Conversation, data: RedditData
    ) -> ChatMessage | None:
        asked = ChatMessage(role="user", content=question)
        conversation = ConversationStore.append_message(conversation, asked)
        self.current_conversation = conversation
        try:
            await self.conversations.save(conversation)
        except Exception:
            logger.exception("Failed to save question for r/%s", conversation.subreddit)
            self.error = SAVE_FAILED_ERROR
            return None

        try:
            response = await self.gemini.generate_response(
                question, data, conversation.messages
            )
        except GenerationError:
            logger.exception("Failed to generate response")
            self.error = GENERATION_FAILED_ERROR
            return None
        except Exception:
            logger.exception("Unexpected error generating response")
            self.error = GENERATION_FAILED_ERROR
            return None

        reply = ChatMessage(
            role="assistant",
            content=response,
            sources=tuple(extract_sources(response)),
        )
        try:
            # Re-read: the conversation may have been cleared or reset meanwhile
            latest = await self.conversations.get(conversation.id)
            if latest is None or all(m.id != asked.id for m in latest.messages):
                logger.info(
                    "Dropping reply for r/%s: its question was deleted", conversation.subreddit
                )
                return None
            final = ConversationStore.append_message(latest, reply)
            await self.conversations.save(final)
        except Exception:
            logger.exception("Failed to save reply for r/%s", conversation.subreddit)
            self.error = SAVE_FAILED_ERROR
            return None

        if self.current_conversation is not None and self.current_conversation.id == final.id:
            self.current_conversation = final
        else:
            logger.info("Saved late reply to inactive conversation for r/%s", final.subreddit)
        return reply

    async def clear_conversation(self) -> int:
        """Remove all messages from the active conversation. Returns the count cleared."""
        if self.current_conversation is None:
            return 0
        count = len(self.current_conversation.messages)
        cleared = ConversationStore.clear(self.current_conversation)
        self.current_conversation = cleared
        await self.conversations.save(cleared)
        return count

    def stats(self) -> SubredditStats | None:
        if self.reddit_data is None:
            return None
        return SubredditStats.from_data(self.reddit_data)

    async def reset(self) -> None:
        """Delete every saved conversation and snapshot. Credentials are kept."""
        if self._validation_task is not None and not self._validation_task.done():
            self._validation_task.cancel()
        conversations = await self.conversations.clear_all()
        snapshots = await self.cache.clear_all()
        logger.info("Reset: removed %d conversations and %d snapshots", conversations, snapshots)
        self.selected_subreddit = ""
        self.reddit_data = None
        self.current_conversation = None
        self.error = None
