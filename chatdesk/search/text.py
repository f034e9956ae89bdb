"""Text helpers for article snippets and chat-derived search queries."""

from __future__ import annotations

import re

NO_PREVIEW = "No preview available"
ELLIPSIS = "..."

# Proportion of the truncation window after which a word boundary is used.
WORD_BREAK_THRESHOLD = 0.7

MIN_QUERY_LENGTH = 3
STOP_WORDS: frozenset[str] = frozenset({"help", "issue", "problem", "question", "support"})

# Role markers the chat widget embeds in transcripts: six whitespace
# characters followed by the end-user or agent glyph.
END_USER_MARKER = "\U0001F4AC"
AGENT_MARKER = "\U0001F642"
_ROLE_MARKER_RE = re.compile(rf"\s{{6}}(?:{END_USER_MARKER}|{AGENT_MARKER})")

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)

# Applied once each, in order.
_CONVERSATIONAL_PREFIXES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?:hi|hello|hey)\b[\s,.!]*", re.IGNORECASE),
    re.compile(r"^(?:can you help(?: me)?|help me|i need help)(?:\s+with)?\s+", re.IGNORECASE),
    re.compile(r"^(?:please|could you)\s+", re.IGNORECASE),
    re.compile(r"^(?:i have an?|i'm having|i am having)\s+", re.IGNORECASE),
)


def strip_markup(html_text: str) -> str:
    """Remove tags, decode the common entities and collapse whitespace."""

    text = _TAG_RE.sub(" ", html_text)
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    return _WHITESPACE_RE.sub(" ", text).strip()


def create_snippet(html_text: object, max_length: int = 150) -> str:
    """Build a plain-text preview of at most ``max_length`` characters plus an ellipsis.

    Truncation prefers the last space in the window when it falls in the
    final 30% of it; otherwise the text is cut at ``max_length``.
    """

    if not html_text or not isinstance(html_text, str):
        return NO_PREVIEW

    clean = strip_markup(html_text)
    if len(clean) > max_length:
        truncated = clean[:max_length]
        last_space = truncated.rfind(" ")
        if last_space > max_length * WORD_BREAK_THRESHOLD:
            clean = truncated[:last_space] + ELLIPSIS
        else:
            clean = truncated + ELLIPSIS

    return clean or NO_PREVIEW


def extract_search_query(message: object) -> str:
    """Turn a raw chat message into a search query.

    Role markers are dropped, then greetings and filler such as
    "can you help" or "please" are removed from the front.
    """

    if not message or not isinstance(message, str):
        return ""

    query = _ROLE_MARKER_RE.sub("", message).strip()
    for pattern in _CONVERSATIONAL_PREFIXES:
        query = pattern.sub("", query, count=1)
    return query.strip()


def is_valid_search_query(query: object, *, min_length: int = MIN_QUERY_LENGTH) -> bool:
    if not query or not isinstance(query, str):
        return False

    clean = query.strip()
    if len(clean) < min_length:
        return False
    return clean.lower() not in STOP_WORDS
