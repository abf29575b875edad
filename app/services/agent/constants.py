"""Vocabulary and fixed phrases for the call conversation."""

# Terms suggesting the caller drifted away from the call's purpose
OUT_OF_CONTEXT_INDICATORS = [
    "weather",
    "sports",
    "politics",
    "entertainment",
    "gossip",
    "joke",
    "riddle",
    "game",
    "personal question",
    "unrelated",
    "different topic",
]

# Terms signalling the caller is declining
DECLINE_INDICATORS = [
    "no",
    "not",
    "nope",
    "negative",
    "decline",
    "cancel",
    "don't think",
    "i'll pass",
    "maybe later",
    "no thank you",
    "no thankyou",
]

# Purpose words shorter than this are ignored when matching keywords
MIN_PURPOSE_KEYWORD_LENGTH = 4

OUT_OF_CONTEXT_CONFIDENCE = 0.7
IN_CONTEXT_CONFIDENCE = 0.6

MONTHS = (
    "january|february|march|april|may|june|july|august"
    "|september|october|november|december"
)
MONTH_ABBREVIATIONS = "jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec"
WEEKDAYS = "monday|tuesday|wednesday|thursday|friday|saturday|sunday"
ORDINAL = r"(?:st|nd|rd|th)?"

# Fixed agent phrases
DEFAULT_GREETING = (
    "Hello! I'm AI assistant for scheduling meetings. "
    "Would you like to schedule a meeting?"
)
DATE_CONFIRMATION_REPLY = (
    "Perfect! I've confirmed that date for you. "
    "Thank you for your time. Have a great day!"
)
DECLINE_REPLY = "Thank you for your time. Have a great day!"
OUT_OF_CONTEXT_REPLY = (
    "Sorry, I'm here to help with meeting scheduling and appointments. "
    "Would you like to schedule a meeting?"
)
CLARIFICATION_REPLY = (
    "I understand you're interested in meeting scheduling. "
    "Could you please provide more details about what you need help with?"
)
EMPTY_SPEECH_PROMPT = "Sorry, I didn't catch that. Could you say that again?"

# Fixed markup phrases
NO_INPUT_RETRY_PROMPT = "I didn't hear anything. Let me try again."
SPEAK_NOW_PROMPT = "Please speak now."
NO_INPUT_GOODBYE = "Thank you for calling. Goodbye!"
ERROR_APOLOGY = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Please try calling again later."
)
