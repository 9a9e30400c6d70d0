"""Text cleanup shared by every extraction strategy.

``normalize_content`` is pure and idempotent: the cleanup passes are repeated
until the text stops changing, and every pass only ever shortens the text, so
the loop always terminates. Capping (``truncate_content``) runs after the
cleanup, and a capped result passed back in with the same bound is returned
as is.
"""

from __future__ import annotations

import re

TRUNCATION_MARKER = "..."
_CUT_SENTINEL = "x"

_LINE_ENDINGS_RE = re.compile(r"\r\n?")
_HORIZONTAL_WS_RE = re.compile(r"[ \t\f\v\u00a0]+")
_LINE_EDGES_RE = re.compile(r"^ +| +$", re.MULTILINE)
_SPACE_BEFORE_PUNCT_RE = re.compile(r" +([.!?])")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

# Applied in order: multi-word prompts go before the single-word ones that
# would otherwise break them apart.
_BOILERPLATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(?:Twitter|Facebook|LinkedIn|Instagram|YouTube)\s+(?:Follow|Like|Share)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b\d[\d,.]*[kKmM]?\s+(?:likes?|shares?|comments?|views?|claps?)\b", re.IGNORECASE),
    re.compile(r"\b\d+\s+(?:min|minute|minutes)\s+read\b", re.IGNORECASE),
    re.compile(r"\b(?:Published|Updated|Posted)\s+on\s+\w+\s+\d{1,2},?\s+\d{4}\b", re.IGNORECASE),
    # Title-case only, so ordinary prose ("share the load") survives.
    re.compile(
        r"\b(?:Share|Like|Follow|Subscribe|Sign up|Sign in|Log in|Cookies?|Privacy Policy|"
        r"Terms of Service|Accept all cookies)\b"
    ),
)


def _clean_once(text: str) -> str:
    text = _LINE_ENDINGS_RE.sub("\n", text)
    text = _HORIZONTAL_WS_RE.sub(" ", text)
    text = _LINE_EDGES_RE.sub("", text)
    for pattern in _BOILERPLATE_PATTERNS:
        text = pattern.sub("", text)
    text = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    text = _EXCESS_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


def _clean(text: str) -> str:
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def _is_capped(text: str, max_length: int) -> bool:
    """True if *text* already has the capped shape of normalised text.

    The kept prefix is cleaned with a word character appended, so a cut that
    ends on a space or halfway through a boilerplate word is left alone.
    """
    if len(text) != max_length + len(TRUNCATION_MARKER) or not text.endswith(TRUNCATION_MARKER):
        return False
    extended = text[:max_length] + _CUT_SENTINEL
    return _clean(extended) == extended


def normalize_content(text: str, max_length: int | None = None) -> str:
    """Collapse whitespace, trim lines and strip boilerplate phrases.

    When *max_length* is given the cleaned text is also capped with
    ``truncate_content``; capped output is returned unchanged on a second pass.
    """
    if max_length is not None and _is_capped(text, max_length):
        return text
    cleaned = _clean(text)
    if max_length is not None:
        return truncate_content(cleaned, max_length)
    return cleaned


def truncate_content(text: str, max_length: int) -> str:
    """Cap *text* at *max_length* characters, marking the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def prepare_body(text: str, max_length: int) -> str:
    """Normalise then cap: the form every ``body_text`` is stored in."""
    return normalize_content(text, max_length)
