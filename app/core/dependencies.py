"""FastAPI dependencies."""
from typing import Optional

from fastapi import Depends

from app.core.config import settings
from app.services.call_session.greetings import PendingGreetingStore
from app.services.call_session.manager import TurnController
from app.services.call_session.store import SessionStore
from app.services.speech.twiml import VoiceMarkupBuilder
from app.services.telephony.twilio_service import TelephonyService

# Process-wide state (lost on restart)
_session_store = SessionStore()
_greeting_store = PendingGreetingStore()
_telephony_service: Optional[TelephonyService] = None


def get_session_store() -> SessionStore:
    """Get the shared call session store."""
    return _session_store


def get_greeting_store() -> PendingGreetingStore:
    """Get the shared pending greeting store."""
    return _greeting_store


def get_telephony_service() -> TelephonyService:
    """Get or create the telephony service singleton."""
    global _telephony_service
    if _telephony_service is None:
        _telephony_service = TelephonyService(settings, _greeting_store)
    return _telephony_service


def get_turn_controller(
    store: SessionStore = Depends(get_session_store),
    greetings: PendingGreetingStore = Depends(get_greeting_store),
) -> TurnController:
    """Get turn controller."""
    return TurnController(
        store,
        greetings,
        VoiceMarkupBuilder.from_settings(settings),
        default_purpose=settings.default_agent_prompt,
    )
