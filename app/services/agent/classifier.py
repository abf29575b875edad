"""Rule-based intent and termination classifier for caller transcripts.

Every check is a pure function over the raw transcript text so a decision can
be made inside a single webhook turn without an inference round trip.
"""
import re
from enum import Enum
from typing import List, NamedTuple, Optional, Pattern, Set

from app.services.agent.constants import (
    DECLINE_INDICATORS,
    IN_CONTEXT_CONFIDENCE,
    MIN_PURPOSE_KEYWORD_LENGTH,
    MONTH_ABBREVIATIONS,
    MONTHS,
    ORDINAL,
    OUT_OF_CONTEXT_CONFIDENCE,
    OUT_OF_CONTEXT_INDICATORS,
    WEEKDAYS,
)


class EndReason(str, Enum):
    """Why the ending check decided to close the call."""

    DATE = "date"
    DECLINE = "decline"


class ContextCheck(NamedTuple):
    """Result of the out-of-context check."""

    is_out_of_context: bool
    confidence: float


class EndingCheck(NamedTuple):
    """Result of the call-ending check."""

    should_end: bool
    reason: Optional[EndReason] = None


def _compile(patterns: List[str]) -> List[Pattern]:
    return [re.compile(pattern, re.IGNORECASE) for pattern in patterns]


DATE_PATTERNS = _compile(
    [
        # 25th august, 25 august / august 25th, august 25
        rf"\b\d{{1,2}}{ORDINAL}\s+({MONTHS})\b",
        rf"\b({MONTHS})\s+\d{{1,2}}{ORDINAL}\b",
        # 25th aug / aug 25th
        rf"\b\d{{1,2}}{ORDINAL}\s+({MONTH_ABBREVIATIONS})\b",
        rf"\b({MONTH_ABBREVIATIONS})\s+\d{{1,2}}{ORDINAL}\b",
        # 25, august / august 25, 2025
        rf"\b\d{{1,2}}{ORDINAL}\s*,\s*({MONTHS})\b",
        rf"\b({MONTHS})\s+\d{{1,2}}{ORDINAL}\s*,\s*\d{{4}}\b",
        # 25 august 2025 / august 25 2025
        rf"\b\d{{1,2}}{ORDINAL}\s+({MONTHS})\s+\d{{4}}\b",
        rf"\b({MONTHS})\s+\d{{1,2}}{ORDINAL}\s+\d{{4}}\b",
        rf"\b\d{{1,2}}{ORDINAL}\s+({MONTH_ABBREVIATIONS})\s+\d{{4}}\b",
        rf"\b({MONTH_ABBREVIATIONS})\s+\d{{1,2}}{ORDINAL}\s+\d{{4}}\b",
        # monday, next monday, this monday
        rf"\b({WEEKDAYS})\b",
        rf"\bnext\s+({WEEKDAYS})\b",
        rf"\bthis\s+({WEEKDAYS})\b",
        # Relative days
        r"\btoday\b",
        r"\btomorrow\b",
        r"\byesterday\b",
        r"\bnext\s+week\b",
        r"\bthis\s+week\b",
        r"\bnext\s+month\b",
        r"\bthis\s+month\b",
    ]
)

DECLINE_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(term) for term in DECLINE_INDICATORS) + r")\b",
    re.IGNORECASE,
)

_WORD_PATTERN = re.compile(r"[a-z']+")


def normalize(text: Optional[str]) -> str:
    """Lower-case a transcript and fold typographic apostrophes."""
    if not text:
        return ""
    return text.replace("’", "'").lower().strip()


def purpose_keywords(purpose: str) -> Set[str]:
    """Significant lower-cased words of a call purpose."""
    return {
        word.strip("'")
        for word in _WORD_PATTERN.findall(normalize(purpose))
        if len(word.strip("'")) >= MIN_PURPOSE_KEYWORD_LENGTH
    }


def check_out_of_context(transcript: str, purpose: str) -> ContextCheck:
    """
    Decide whether a transcript strayed from the call's purpose.

    Out of context means an off-topic indicator is present and none of the
    purpose keywords are.
    """
    text = normalize(transcript)
    has_relevant_keywords = any(word in text for word in purpose_keywords(purpose))
    has_indicator = any(indicator in text for indicator in OUT_OF_CONTEXT_INDICATORS)

    if has_indicator and not has_relevant_keywords:
        return ContextCheck(True, OUT_OF_CONTEXT_CONFIDENCE)
    return ContextCheck(False, IN_CONTEXT_CONFIDENCE)


def mentions_date(transcript: str) -> bool:
    """Whether the transcript names a day, date or relative day."""
    text = normalize(transcript)
    return any(pattern.search(text) for pattern in DATE_PATTERNS)


def is_decline(transcript: str) -> bool:
    """Whether the transcript contains a negative-intent term."""
    return DECLINE_PATTERN.search(normalize(transcript)) is not None


def check_call_ending(transcript: str) -> EndingCheck:
    """Union of the date-mention and decline triggers."""
    if mentions_date(transcript):
        return EndingCheck(True, EndReason.DATE)
    if is_decline(transcript):
        return EndingCheck(True, EndReason.DECLINE)
    return EndingCheck(False)
