"""Subreddit Insights — chat with an LLM about a subreddit's recent activity."""

__version__ = "0.1.0"
