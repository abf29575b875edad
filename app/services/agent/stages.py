"""Call stage and gateway status enumerations."""
from enum import Enum


class CallStage(str, Enum):
    """Stages of a call session's turn-taking cycle."""

    NEW = "new"  # No session yet
    GREETING = "greeting"  # Session just created, first utterance pending
    LISTENING = "listening"  # Waiting for a transcript
    RESPONDING = "responding"  # Producing a reply for a received transcript
    TERMINATED = "terminated"  # Session removed

    def __str__(self) -> str:
        """Return the string value of the stage."""
        return self.value


class CallStatus(str, Enum):
    """Call status values reported by the telephony gateway."""

    QUEUED = "queued"
    INITIATED = "initiated"
    RINGING = "ringing"
    ANSWERED = "answered"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    BUSY = "busy"
    NO_ANSWER = "no-answer"
    CANCELED = "canceled"

    def __str__(self) -> str:
        return self.value


TERMINAL_STATUSES = frozenset(
    {
        CallStatus.COMPLETED,
        CallStatus.FAILED,
        CallStatus.BUSY,
        CallStatus.NO_ANSWER,
        CallStatus.CANCELED,
    }
)
