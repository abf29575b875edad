"""Health check endpoint."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from app.core.dependencies import get_session_store, get_telephony_service
from app.services.call_session.store import SessionStore
from app.services.telephony.twilio_service import TelephonyService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    telephony: TelephonyService = Depends(get_telephony_service),
):
    """Health check endpoint."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    services = {
        "twilio": telephony.is_configured,
        "webhook": True,
    }
    return {
        "status": "healthy" if all(services.values()) else "degraded",
        "services": services,
        "active_sessions": store.active_count(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
