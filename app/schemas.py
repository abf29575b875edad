"""Request and response schemas for the calls API."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.services.agent.stages import CallStage
from app.services.call_session.models import Turn


class PlaceCallRequest(BaseModel):
    """Request to place an outbound call."""

    to: str = Field(..., min_length=1, description="Destination phone number")
    message: Optional[str] = Field(None, description="Greeting spoken when the call connects")
    timeout: Optional[int] = Field(None, gt=0, le=600, description="Ring timeout in seconds")
    record: Optional[bool] = None
    max_duration: Optional[int] = Field(None, gt=0, description="Call duration cap in seconds")


class PlaceCallResponse(BaseModel):
    """Identifier and initial status of a placed call."""

    call_id: str
    status: str
    to: str


class CallSessionResponse(BaseModel):
    """Snapshot of a live call session."""

    call_id: str
    purpose: str
    active: bool
    stage: CallStage
    started_at: datetime
    last_activity_at: datetime
    turn_count: int
    history: List[Turn]


class CallStatusResponse(BaseModel):
    """Call status as reported by the telephony gateway."""

    call_id: str
    status: str
    duration: Optional[str] = None
    direction: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class PurposeUpdateRequest(BaseModel):
    """New purpose for a live call."""

    purpose: str = Field(..., min_length=1)
