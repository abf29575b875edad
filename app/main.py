"""Main FastAPI application."""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI

from app.api import calls, health
from app.api.webhooks import voice
from app.core.config import settings
from app.core.dependencies import (
    get_greeting_store,
    get_session_store,
    get_telephony_service,
)
from app.core.logging import setup_logging
from app.services.call_session.greetings import PendingGreetingStore
from app.services.call_session.store import SessionStore

logger = logging.getLogger(__name__)


async def sweep_idle_sessions(
    store: SessionStore,
    greetings: PendingGreetingStore,
    max_idle_seconds: int,
    interval_seconds: int,
) -> None:
    """Periodically evict sessions and greetings whose terminal status never arrived."""
    while True:
        await asyncio.sleep(max(interval_seconds, 1))
        try:
            store.evict_idle(max_idle_seconds)
        except Exception:
            logger.exception("[SWEEPER] Idle session sweep failed")
        try:
            greetings.evict_stale(max_idle_seconds)
        except Exception:
            logger.exception("[SWEEPER] Stale greeting sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()

    telephony = get_telephony_service()
    if telephony.is_configured:
        logger.info("Twilio service initialized successfully")
    else:
        logger.warning("Twilio service NOT configured - outbound calls will report not ready")
    if not settings.base_url:
        logger.warning("BASE_URL not set - outbound calls cannot be placed")

    sweeper = None
    if settings.session_idle_timeout_seconds > 0:
        sweeper = asyncio.create_task(
            sweep_idle_sessions(
                get_session_store(),
                get_greeting_store(),
                settings.session_idle_timeout_seconds,
                settings.session_sweep_interval_seconds,
            )
        )

    yield

    # Shutdown
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(
    title="Meeting Call Agent",
    description="Voice agent that calls contacts to schedule meetings",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(voice.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(calls.router, tags=["calls"])


@app.get("/")
async def root():
    """Service banner."""
    return {
        "message": "Meeting Call Agent API",
        "version": "0.1.0",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
