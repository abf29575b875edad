"""Error types raised by the call agent."""


class CallAgentError(Exception):
    """Base class for call agent errors."""


class ConfigurationError(CallAgentError):
    """Telephony credentials or the public base URL are missing."""


class UnknownSessionError(CallAgentError):
    """A webhook or API call referenced a call with no live session."""

    def __init__(self, call_id: str):
        super().__init__(f"No active session for call {call_id}")
        self.call_id = call_id


class ClassificationError(CallAgentError):
    """Unexpected failure while classifying a transcript."""


class GenerationError(CallAgentError):
    """Unexpected failure while generating a reply."""


class InvalidPhoneNumberError(CallAgentError, ValueError):
    """A destination number could not be normalized to E.164."""


class TelephonyError(CallAgentError):
    """The telephony gateway rejected a request."""
