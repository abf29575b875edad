"""Call session models."""
from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from app.services.agent.stages import CallStage


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Speaker(str, Enum):
    """Who produced a turn."""

    USER = "user"
    AGENT = "agent"


class Turn(BaseModel):
    """A single utterance in the call history."""

    speaker: Speaker
    text: str
    at: datetime = Field(default_factory=utcnow)


class CallSession(BaseModel):
    """Server-held state for one live call."""

    call_id: str
    purpose: str
    history: List[Turn] = []
    active: bool = True
    stage: CallStage = CallStage.GREETING
    started_at: datetime = Field(default_factory=utcnow)
    last_activity_at: datetime = Field(default_factory=utcnow)
    turn_count: int = 0

    def add_turn(self, speaker: Speaker, text: str) -> Turn:
        """Append a turn and refresh the activity timestamp."""
        turn = Turn(speaker=speaker, text=text)
        self.history.append(turn)
        self.last_activity_at = turn.at
        return turn

    def touch(self) -> None:
        """Mark the session as active now."""
        self.last_activity_at = utcnow()

    def get_transcript_text(self) -> str:
        """Get full transcript as text."""
        return "\n".join(f"{turn.speaker.value}: {turn.text}" for turn in self.history)
