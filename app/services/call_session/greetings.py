"""Short-lived staging of greetings for calls that have not connected yet.

A greeting is written before the outbound call is placed, so it is staged
under a temporary token, moved under the real call identifier once the gateway
assigns one, and consumed by the first webhook of the call.
"""
import logging
import secrets
from datetime import datetime, timedelta
from threading import Lock
from typing import Dict, List, NamedTuple, Optional

from app.services.call_session.models import utcnow

logger = logging.getLogger(__name__)


class _Staged(NamedTuple):
    text: str
    staged_at: datetime


class PendingGreetingStore:
    """Keyed store of greetings awaiting their call's first webhook."""

    def __init__(self):
        self._lock = Lock()
        self._greetings: Dict[str, _Staged] = {}

    def stage(self, text: str) -> str:
        """Stage a greeting under a fresh token and return the token."""
        token = f"tmp_{secrets.token_urlsafe(16)}"
        with self._lock:
            self._greetings[token] = _Staged(text, utcnow())
        logger.debug(f"[GREETINGS] Staged greeting under token {token}")
        return token

    def rekey(self, token: str, call_id: str) -> bool:
        """Move a staged greeting from its token to the real call identifier."""
        with self._lock:
            entry = self._greetings.pop(token, None)
            if entry is None:
                return False
            self._greetings[call_id] = entry
        logger.debug(f"[GREETINGS] Re-keyed greeting {token} -> {call_id}")
        return True

    def claim(self, call_id: str, token: Optional[str] = None) -> Optional[str]:
        """
        Read a greeting once.

        Looks up the call identifier first and falls back to the token. Both
        entries are deleted whether or not anything was found.
        """
        with self._lock:
            entry = self._greetings.pop(call_id, None)
            token_entry = self._greetings.pop(token, None) if token else None
        if entry is None:
            entry = token_entry
        return entry.text if entry is not None else None

    def discard(self, key: str) -> None:
        """Drop a staged greeting if present."""
        with self._lock:
            self._greetings.pop(key, None)

    def evict_stale(self, max_age_seconds: float, now: Optional[datetime] = None) -> List[str]:
        """Drop greetings staged longer ago than max_age_seconds."""
        cutoff = (now or utcnow()) - timedelta(seconds=max_age_seconds)
        with self._lock:
            stale = [key for key, entry in self._greetings.items() if entry.staged_at < cutoff]
            for key in stale:
                del self._greetings[key]
        if stale:
            logger.warning(f"[GREETINGS] Evicted {len(stale)} unclaimed greeting(s): {stale}")
        return stale

    def __len__(self) -> int:
        with self._lock:
            return len(self._greetings)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._greetings
