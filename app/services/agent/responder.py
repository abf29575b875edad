"""Rule-based reply generation and conversation summaries."""
import re
from typing import Callable, List, NamedTuple, Sequence

from app.services.agent.classifier import EndingCheck, EndReason, normalize
from app.services.agent.constants import (
    CLARIFICATION_REPLY,
    DATE_CONFIRMATION_REPLY,
    DECLINE_REPLY,
)
from app.services.call_session.models import CallSession, Turn


def _matches(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern, re.IGNORECASE)
    return lambda text: compiled.search(text) is not None


def _all(*predicates: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: all(predicate(text) for predicate in predicates)


_scheduling = _matches(r"\b(?:schedul\w*|meetings?|appointments?)\b")
_asks_when = _matches(r"\b(?:when|time)\b")
_asks_where = _matches(r"\b(?:where|location)\b")


class ResponseRule(NamedTuple):
    """A topic bucket: first rule whose predicate matches supplies the reply."""

    name: str
    predicate: Callable[[str], bool]
    reply: str


RESPONSE_RULES: List[ResponseRule] = [
    ResponseRule(
        "scheduling_time",
        _all(_scheduling, _asks_when),
        "I'd be happy to help you schedule a meeting. What time would work best for you?",
    ),
    ResponseRule(
        "scheduling_location",
        _all(_scheduling, _asks_where),
        "The default location for meetings is Google Meet. Would you like me to set it up there?",
    ),
    ResponseRule(
        "scheduling",
        _scheduling,
        "I can help you schedule that meeting. What day and time would work best for you?",
    ),
    ResponseRule(
        "calendar",
        _matches(r"\b(?:calendar|available|availability|free)\b"),
        "Let me check your calendar availability. What date are you looking for?",
    ),
    ResponseRule(
        "confirmation",
        _matches(r"\b(?:yes|yeah|sure|confirm|okay|ok)\b"),
        "Perfect! What date and time would work best for you?",
    ),
    # Only reachable through match_rule; generate_reply answers declines before the table
    ResponseRule(
        "decline",
        _matches(r"\b(?:no|not|nope|negative|decline|cancel|don't think|i'll pass|maybe later|no thank ?you)\b"),
        DECLINE_REPLY,
    ),
    ResponseRule(
        "cancellation",
        _matches(r"\b(?:cancel\w*|reschedul\w*|change)\b"),
        "I can help you cancel or reschedule. Which meeting would you like to modify?",
    ),
    ResponseRule(
        "greeting",
        _matches(r"\b(?:hello|hi|hey)\b"),
        "Hello! I'm your AI meeting assistant. How can I help you today?",
    ),
]


def match_rule(transcript: str, rules: Sequence[ResponseRule] = RESPONSE_RULES):
    """Return the first rule matching the transcript, or None."""
    text = normalize(transcript)
    for rule in rules:
        if rule.predicate(text):
            return rule
    return None


def generate_reply(transcript: str, session: CallSession, ending: EndingCheck) -> str:
    """
    Produce the agent's reply for a transcript.

    A date mention always gets the confirmation-and-goodbye phrase and a
    decline gets the farewell, since the call ends after either. Otherwise the
    first matching topic bucket wins, falling back to a clarification request.
    The session is only read.
    """
    if ending.reason == EndReason.DATE:
        return DATE_CONFIRMATION_REPLY
    if ending.reason == EndReason.DECLINE:
        return DECLINE_REPLY

    rule = match_rule(transcript)
    if rule is not None:
        return rule.reply
    return CLARIFICATION_REPLY


TOPIC_KEYWORDS = [
    ("Meeting Scheduling", ("meeting",)),
    ("Calendar Management", ("calendar",)),
    ("Time/Date Coordination", ("time", "date")),
    ("Location Planning", ("location",)),
]


def extract_key_topics(history: Sequence[Turn]) -> str:
    """Topics touched on anywhere in the conversation."""
    topics: List[str] = []
    for turn in history:
        content = turn.text.lower()
        for topic, keywords in TOPIC_KEYWORDS:
            if topic not in topics and any(keyword in content for keyword in keywords):
                topics.append(topic)
    return ", ".join(topics) or "General conversation"


def summarize_conversation(session: CallSession) -> str:
    """Plain-text summary of a finished call."""
    return (
        "Conversation Summary:\n"
        f"Agent Purpose: {session.purpose}\n"
        f"Total Exchanges: {len(session.history)}\n"
        "\n"
        "Key Topics Discussed:\n"
        f"{extract_key_topics(session.history)}"
    )
