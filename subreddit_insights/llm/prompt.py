"""Prompt assembly: analyst preamble, subreddit context and conversation history."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from subreddit_insights.conversations.models import ChatMessage
    from subreddit_insights.reddit.models import RedditData

# Character limits for post/comment bodies in the context block. These bound
# prompt size, so changing them changes what the model sees.
POST_BODY_LIMIT = 200
COMMENT_BODY_LIMIT = 150
MAX_CONTEXT_COMMENTS = 50
HISTORY_TURNS = 6
MAX_SOURCES = 3

ELLIPSIS = "..."

SYSTEM_PROMPT = """\
You are a Reddit Insights Assistant designed specifically for entrepreneurs, founders, and business enthusiasts. Your role is to analyze Reddit data and provide actionable insights for:

1. BUSINESS OPPORTUNITIES: Identify potential SaaS ideas, product opportunities, and market gaps
2. LEAD GENERATION: Spot potential customers, partners, or collaboration opportunities
3. MARKET RESEARCH: Understand pain points, trends, and user behavior
4. COMPETITIVE ANALYSIS: Identify competitors and market positioning opportunities

ANALYSIS GUIDELINES:
- Focus on actionable business insights and opportunities
- Identify recurring pain points that could become product ideas
- Highlight potential customer segments and their needs
- Point out market trends and emerging opportunities
- Suggest specific business ideas with rationale
- Always cite specific posts/comments when making claims
- Be concise but thorough in your analysis

RESPONSE FORMAT:
- Use clear sections and bullet points
- Include specific examples from the data
- Provide actionable recommendations
- Cite sources using post titles or comment snippets
- Keep responses focused on business value

Remember: You're helping entrepreneurs make data-driven decisions about business opportunities."""

CLOSING_INSTRUCTION = (
    "Provide a detailed analysis focusing on business opportunities and actionable insights:"
)


def truncate(text: str, limit: int) -> str:
    """Cut *text* to *limit* characters, appending an ellipsis if anything was cut."""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def build_context(data: RedditData) -> str:
    """Render subreddit metadata, every post and the first 50 comments."""
    info = data.subreddit
    lines = [
        "SUBREDDIT ANALYSIS CONTEXT:",
        "",
        f"Subreddit: r/{info.display_name}",
        f"Subscribers: {info.subscribers:,}",
        f"Active Users: {info.active_user_count:,}",
        f"Description: {info.public_description}",
        "",
        f"TOP POSTS ({len(data.posts)}):",
    ]
    for index, post in enumerate(data.posts, start=1):
        lines.append(f'{index}. "{post.title}" by u/{post.author}')
        lines.append(f"   Score: {post.score}, Comments: {post.num_comments}")
        if post.selftext:
            lines.append(f"   Content: {truncate(post.selftext, POST_BODY_LIMIT)}")
        lines.append(f"   URL: {post.url}")
        lines.append("")

    # Header counts every comment even though only the first 50 are listed
    lines.append(f"TOP COMMENTS ({len(data.comments)}):")
    for index, comment in enumerate(data.comments[:MAX_CONTEXT_COMMENTS], start=1):
        body = truncate(comment.body, COMMENT_BODY_LIMIT)
        lines.append(f"{index}. u/{comment.author} (Score: {comment.score}): {body}")
        lines.append("")

    return "\n".join(lines) + "\n"


def format_history(history: Sequence[ChatMessage]) -> str:
    """Render the last six turns as ``ROLE: text`` lines, or nothing."""
    if not history:
        return ""
    lines = ["", "PREVIOUS CONVERSATION:"]
    for msg in history[-HISTORY_TURNS:]:
        lines.append(f"{msg.role.upper()}: {msg.content}")
    return "\n".join(lines) + "\n\n"


def build_prompt(question: str, data: RedditData, history: Sequence[ChatMessage]) -> str:
    """Assemble the single prompt sent to the model."""
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"{build_context(data)}"
        f"{format_history(history)}"
        f"USER QUESTION: {question}\n\n"
        f"{CLOSING_INSTRUCTION}"
    )


def extract_sources(response: str) -> list[str]:
    """Pick out up to three lines that look like subreddit citations.

    A line qualifies when it mentions ``r/`` and also "post" or "comment".
    Heuristic only.
    """
    sources: list[str] = []
    for line in response.splitlines():
        if "r/" in line and ("post" in line or "comment" in line):
            sources.append(line.strip())
            if len(sources) >= MAX_SOURCES:
                break
    return sources
