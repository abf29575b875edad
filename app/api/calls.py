"""Outbound call API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from app.core.dependencies import (
    get_session_store,
    get_telephony_service,
    get_turn_controller,
)
from app.core.exceptions import (
    ConfigurationError,
    InvalidPhoneNumberError,
    TelephonyError,
    UnknownSessionError,
)
from app.schemas import (
    CallSessionResponse,
    CallStatusResponse,
    PlaceCallRequest,
    PlaceCallResponse,
    PurposeUpdateRequest,
)
from app.services.call_session.manager import TurnController
from app.services.call_session.store import SessionStore
from app.services.telephony.twilio_service import TelephonyService

router = APIRouter(prefix="/api/calls")
logger = logging.getLogger(__name__)


# Routes that reach Twilio are sync so the blocking REST client runs in the threadpool
@router.post("", response_model=PlaceCallResponse)
def place_call(
    request: PlaceCallRequest,
    telephony: TelephonyService = Depends(get_telephony_service),
):
    """
    Place an outbound call.

    Errors:
        400: Invalid phone number
        502: Twilio rejected the call
        503: Twilio not configured
    """
    logger.info(f"[CALLS API] Place call requested - To: {request.to}")

    try:
        placed = telephony.place_call(
            request.to,
            message=request.message,
            timeout=request.timeout,
            record=request.record,
            max_duration=request.max_duration,
        )
    except InvalidPhoneNumberError as e:
        raise HTTPException(status_code=400, detail=f"invalid_phone_number: {e}")
    except ConfigurationError as e:
        logger.error(f"[CALLS API] Telephony not ready: {e}")
        raise HTTPException(status_code=503, detail=f"twilio_not_configured: {e}")
    except TelephonyError as e:
        raise HTTPException(status_code=502, detail=f"twilio_error: {e}")

    return PlaceCallResponse(call_id=placed.call_id, status=placed.status, to=placed.to)


@router.get("/{call_id}", response_model=CallSessionResponse)
async def get_call_session(
    call_id: str,
    store: SessionStore = Depends(get_session_store),
):
    """Get the live session for a call."""
    session = store.get(call_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"call_not_found: No active session for {call_id}")
    return CallSessionResponse(**session.model_dump())


@router.get("/{call_id}/status", response_model=CallStatusResponse)
def get_call_status(
    call_id: str,
    telephony: TelephonyService = Depends(get_telephony_service),
):
    """Fetch a call's status from Twilio."""
    try:
        status = telephony.get_call_status(call_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=f"twilio_not_configured: {e}")
    except TelephonyError as e:
        raise HTTPException(status_code=502, detail=f"twilio_error: {e}")
    return CallStatusResponse(**status)


@router.put("/{call_id}/purpose", response_model=CallSessionResponse)
async def update_call_purpose(
    call_id: str,
    request: PurposeUpdateRequest,
    controller: TurnController = Depends(get_turn_controller),
):
    """Override the purpose of a live call."""
    try:
        session = controller.override_purpose(call_id, request.purpose)
    except UnknownSessionError as e:
        raise HTTPException(status_code=404, detail=f"call_not_found: {e}")
    return CallSessionResponse(**session.model_dump())
