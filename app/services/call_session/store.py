"""In-memory store of live call sessions keyed by call identifier."""
import logging
import zlib
from datetime import datetime, timedelta
from threading import Lock
from typing import Dict, List, Optional, Tuple

from app.services.agent.stages import CallStage
from app.services.call_session.models import CallSession, Speaker, utcnow

logger = logging.getLogger(__name__)

DEFAULT_SHARD_COUNT = 16


class _Shard:
    """One lock-guarded slice of the session map."""

    __slots__ = ("lock", "sessions")

    def __init__(self):
        self.lock = Lock()
        self.sessions: Dict[str, CallSession] = {}


class SessionStore:
    """
    Sole owner of call session lifecycle.

    The map is split into shards, each guarded by its own lock, so operations
    on different calls only contend when their identifiers hash to the same
    shard.
    """

    def __init__(self, shard_count: int = DEFAULT_SHARD_COUNT):
        if shard_count < 1:
            raise ValueError("shard_count must be at least 1")
        self._shards = [_Shard() for _ in range(shard_count)]

    def _shard(self, call_id: str) -> _Shard:
        index = zlib.crc32(call_id.encode("utf-8")) % len(self._shards)
        return self._shards[index]

    def get_or_create(self, call_id: str, purpose: str) -> Tuple[CallSession, bool]:
        """Return the session for a call, creating it if absent."""
        shard = self._shard(call_id)
        with shard.lock:
            session = shard.sessions.get(call_id)
            if session is not None:
                return session, False
            session = CallSession(call_id=call_id, purpose=purpose)
            shard.sessions[call_id] = session
        logger.info(f"[SESSION STORE] Created session - CallSid: {call_id}")
        return session, True

    def get(self, call_id: str) -> Optional[CallSession]:
        """Get an existing session."""
        shard = self._shard(call_id)
        with shard.lock:
            return shard.sessions.get(call_id)

    def append_turn(self, call_id: str, speaker: Speaker, text: str) -> None:
        """Append a turn; does nothing if the session has already gone."""
        shard = self._shard(call_id)
        with shard.lock:
            session = shard.sessions.get(call_id)
            if session is None:
                logger.debug(f"[SESSION STORE] Dropping turn for absent session - CallSid: {call_id}")
                return
            session.add_turn(speaker, text)

    def record_exchange(self, call_id: str, user_text: str, agent_text: str) -> None:
        """Append a user turn immediately followed by the agent's reply."""
        shard = self._shard(call_id)
        with shard.lock:
            session = shard.sessions.get(call_id)
            if session is None:
                logger.debug(f"[SESSION STORE] Dropping exchange for absent session - CallSid: {call_id}")
                return
            session.add_turn(Speaker.USER, user_text)
            session.add_turn(Speaker.AGENT, agent_text)
            session.turn_count += 1

    def set_stage(self, call_id: str, stage: CallStage) -> None:
        """Transition the call stage."""
        shard = self._shard(call_id)
        with shard.lock:
            session = shard.sessions.get(call_id)
            if session is None:
                return
            old_stage = session.stage
            session.stage = stage
            session.touch()
        logger.debug(f"[SESSION STORE] Stage {old_stage} -> {stage} - CallSid: {call_id}")

    def update_purpose(self, call_id: str, purpose: str) -> bool:
        """Explicitly override a live session's purpose."""
        shard = self._shard(call_id)
        with shard.lock:
            session = shard.sessions.get(call_id)
            if session is None:
                return False
            session.purpose = purpose
            return True

    def remove(self, call_id: str) -> Optional[CallSession]:
        """Remove a session. Removing an absent session is a no-op."""
        shard = self._shard(call_id)
        with shard.lock:
            session = shard.sessions.pop(call_id, None)
            if session is not None:
                session.active = False
                session.stage = CallStage.TERMINATED
        if session is not None:
            duration = (utcnow() - session.started_at).total_seconds()
            logger.info(
                f"[SESSION STORE] Removed session - CallSid: {call_id}, "
                f"Duration: {duration:.0f}s, Turns: {session.turn_count}"
            )
        return session

    def evict_idle(self, max_idle_seconds: float, now: Optional[datetime] = None) -> List[str]:
        """Remove sessions with no activity for longer than max_idle_seconds."""
        cutoff = (now or utcnow()) - timedelta(seconds=max_idle_seconds)
        evicted: List[str] = []
        for shard in self._shards:
            with shard.lock:
                stale = [
                    call_id
                    for call_id, session in shard.sessions.items()
                    if session.last_activity_at < cutoff
                ]
                for call_id in stale:
                    session = shard.sessions.pop(call_id)
                    session.active = False
                    session.stage = CallStage.TERMINATED
            evicted.extend(stale)
        if evicted:
            logger.warning(f"[SESSION STORE] Evicted {len(evicted)} idle session(s): {evicted}")
        return evicted

    def active_count(self) -> int:
        """Number of live sessions."""
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.sessions)
        return total
