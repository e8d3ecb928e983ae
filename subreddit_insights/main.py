"""Subreddit Insights terminal entry point."""

import asyncio
import getpass
import logging

from subreddit_insights.assistant import (
    EXAMPLE_QUESTIONS,
    POPULAR_BUSINESS_SUBREDDITS,
    InsightsAssistant,
)
from subreddit_insights.config import settings
from subreddit_insights.credentials import Credentials
from subreddit_insights.storage import SqliteKeyValueStore

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)

HELP_TEXT = """\
Commands:
  /r <name>   analyze a subreddit
  /stats      show stats for the current subreddit
  /suggest    list suggested subreddits and questions
  /clear      clear the current conversation
  /config     enter API credentials
  /reset      delete all saved conversations and cached data
  /quit       exit
Anything else is sent as a question about the current subreddit."""


async def _prompt(text: str, secret: bool = False) -> str:
    reader = getpass.getpass if secret else input
    return await asyncio.to_thread(reader, text)


async def _configure(assistant: InsightsAssistant) -> str:
    """Ask for all three credentials and save them."""
    client_id = await _prompt("Reddit client ID: ")
    client_secret = await _prompt("Reddit client secret: ", secret=True)
    api_key = await _prompt("Gemini API key: ", secret=True)
    creds = Credentials(
        reddit_client_id=client_id.strip(),
        reddit_client_secret=client_secret.strip(),
        gemini_api_key=api_key.strip(),
    )
    try:
        await assistant.update_credentials(creds)
    except ValueError as exc:
        return str(exc)
    return "Credentials saved."


def _suggestions() -> str:
    lines = ["Popular subreddits:"]
    lines.extend(f"  r/{name}" for name in POPULAR_BUSINESS_SUBREDDITS)
    lines.append("Try asking:")
    lines.extend(f"  {question}" for question in EXAMPLE_QUESTIONS)
    return "\n".join(lines)


async def handle_line(assistant: InsightsAssistant, line: str) -> str | None:
    """Run one line of user input. Returns text to show, or None to exit."""
    line = line.strip()
    if not line:
        return ""

    command, _, arg = line.partition(" ")
    if command in ("/quit", "/exit"):
        return None
    if command == "/help":
        return HELP_TEXT
    if command == "/suggest":
        return _suggestions()
    if command == "/config":
        return await _configure(assistant)
    if command == "/r":
        if await assistant.validate_and_select(arg):
            conv = assistant.current_conversation
            count = len(conv.messages) if conv else 0
            return f"Ready to analyze r/{assistant.selected_subreddit} ({count} messages in history)."
        return f"Error: {assistant.error}"
    if command == "/stats":
        stats = assistant.stats()
        return "\n".join(stats.to_lines()) if stats else "No subreddit selected."
    if command == "/clear":
        count = await assistant.clear_conversation()
        return f"Cleared {count} messages. Starting fresh."
    if command == "/reset":
        await assistant.reset()
        return "All conversations and cached data deleted."
    if command.startswith("/"):
        return f"Unknown command {command}. Type /help for options."

    reply = await assistant.ask(line)
    if reply is None:
        return f"Error: {assistant.error}" if assistant.error else ""
    text = reply.content
    if reply.sources:
        text += "\n\nSources:\n" + "\n".join(f"- {s}" for s in reply.sources)
    return text


async def run() -> None:
    assistant = InsightsAssistant(SqliteKeyValueStore())
    await assistant.start()
    if not assistant.is_configured:
        print("No API credentials configured. Use /config to add them.")
    print(HELP_TEXT)

    while True:
        prompt = f"r/{assistant.selected_subreddit}> " if assistant.selected_subreddit else "> "
        try:
            line = await _prompt(prompt)
        except EOFError:
            break
        output = await handle_line(assistant, line)
        if output is None:
            break
        if output:
            print(output)


def main() -> None:
    """Start the interactive assistant."""
    logger.info("Starting Subreddit Insights (database %s)", settings.database_path)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
