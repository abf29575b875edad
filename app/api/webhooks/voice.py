"""Twilio voice webhook endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import Response

from app.core.config import settings
from app.core.dependencies import get_turn_controller
from app.services.call_session.manager import TurnController

router = APIRouter()
logger = logging.getLogger(__name__)


def get_base_url(request: Request) -> str:
    """
    Get the base URL for constructing absolute URLs.

    Uses BASE_URL environment variable if set, otherwise constructs from
    request.
    """
    if settings.base_url:
        return settings.base_url.rstrip('/')
    return str(request.base_url).rstrip('/')


def _parse_confidence(value: Optional[str]) -> Optional[float]:
    try:
        return float(value) if value else None
    except ValueError:
        return None


def twiml_response(twiml: str) -> Response:
    """Return a TwiML XML response."""
    return Response(content=twiml, media_type="application/xml")


@router.post("/voice/incoming")
async def handle_incoming_call(
    request: Request,
    CallSid: str = Form(...),
    From: str = Form(None),
    To: str = Form(None),
    greetingToken: Optional[str] = Query(None),
    message: Optional[str] = Query(None),
    controller: TurnController = Depends(get_turn_controller),
):
    """
    Handle the call-connected webhook.

    Called when the call connects and again after every reply, when the
    previous TwiML redirects back here to reopen the capture window.
    """
    logger.info(
        f"[INCOMING CALL] Received call webhook - CallSid: {CallSid}, "
        f"From: {From}, To: {To}, Greeting token: {greetingToken}"
    )

    twiml = controller.handle_call_connected(
        CallSid,
        caller=From,
        callee=To,
        greeting_token=greetingToken,
        greeting_text=message,
        base_url=get_base_url(request),
    )
    logger.debug(f"[INCOMING CALL] TwiML length: {len(twiml)} bytes - CallSid: {CallSid}")
    return twiml_response(twiml)


@router.post("/voice/speech")
async def handle_speech(
    request: Request,
    CallSid: str = Form(...),
    SpeechResult: str = Form(None),
    Confidence: str = Form(None),
    controller: TurnController = Depends(get_turn_controller),
):
    """
    Handle gathered speech from Twilio.

    This endpoint is called after Twilio collects and transcribes user speech.
    """
    logger.info(
        f"[SPEECH] Received speech input - CallSid: {CallSid}, "
        f"SpeechResult length: {len(SpeechResult) if SpeechResult else 0}, "
        f"Confidence: {Confidence}"
    )
    if SpeechResult:
        logger.debug(
            f"[SPEECH] Speech text: '{SpeechResult[:200]}{'...' if len(SpeechResult) > 200 else ''}' - CallSid: {CallSid}"
        )

    twiml = controller.handle_speech(
        CallSid,
        SpeechResult,
        confidence=_parse_confidence(Confidence),
        base_url=get_base_url(request),
    )
    return twiml_response(twiml)


@router.post("/voice/status")
async def handle_call_status(
    CallSid: str = Form(...),
    CallStatus: str = Form(...),
    CallDuration: str = Form(None),
    controller: TurnController = Depends(get_turn_controller),
):
    """
    Handle call status updates from Twilio.

    This endpoint is called when call status changes (completed, failed, etc.).
    """
    logger.info(
        f"[CALL STATUS] Received status update - CallSid: {CallSid}, "
        f"CallStatus: {CallStatus}, Duration: {CallDuration}"
    )

    try:
        if controller.handle_status(CallSid, CallStatus):
            logger.info(f"[CALL STATUS] Session ended - CallSid: {CallSid}, Reason: {CallStatus}")
    except Exception as e:
        logger.error(
            f"[CALL STATUS] Error handling call status update - CallSid: {CallSid}, "
            f"CallStatus: {CallStatus}, Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )

    # Always acknowledge so the gateway does not retry
    return Response(content="OK", media_type="text/plain")
