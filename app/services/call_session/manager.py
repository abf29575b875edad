"""Turn controller: drives one webhook exchange of a live call."""
import logging
from typing import Optional, Union

from app.core.exceptions import (
    ClassificationError,
    GenerationError,
    UnknownSessionError,
)
from app.services.agent import classifier, responder
from app.services.agent.classifier import EndingCheck
from app.services.agent.constants import (
    DEFAULT_GREETING,
    EMPTY_SPEECH_PROMPT,
    OUT_OF_CONTEXT_REPLY,
)
from app.services.agent.stages import TERMINAL_STATUSES, CallStage, CallStatus
from app.services.call_session.greetings import PendingGreetingStore
from app.services.call_session.models import CallSession
from app.services.call_session.store import SessionStore
from app.services.speech.twiml import VoiceMarkupBuilder

logger = logging.getLogger(__name__)


class TurnController:
    """Ties gateway webhooks to session state, classification and markup."""

    def __init__(
        self,
        store: SessionStore,
        greetings: PendingGreetingStore,
        markup: VoiceMarkupBuilder,
        default_purpose: str,
    ):
        self.store = store
        self.greetings = greetings
        self.markup = markup
        self.default_purpose = default_purpose

    def handle_call_connected(
        self,
        call_id: str,
        caller: Optional[str] = None,
        callee: Optional[str] = None,
        greeting_token: Optional[str] = None,
        greeting_text: Optional[str] = None,
        base_url: str = "",
    ) -> str:
        """
        Answer the call-connected webhook.

        The first webhook for a call creates its session and speaks the
        greeting. Later ones (the redirect after each reply) only reopen the
        capture window.

        Returns:
            TwiML XML response
        """
        try:
            session, created = self.store.get_or_create(call_id, self.default_purpose)
            if not created:
                logger.debug(f"[TURN CONTROLLER] Re-entering listen loop - CallSid: {call_id}")
                self.store.set_stage(call_id, CallStage.LISTENING)
                return self.markup.listen_with_retry(None, base_url=base_url)

            logger.info(
                f"[TURN CONTROLLER] New call session - CallSid: {call_id}, "
                f"From: {caller}, To: {callee}"
            )
            greeting = self._resolve_greeting(call_id, greeting_token, greeting_text)
            twiml = self.markup.listen_with_retry(greeting, base_url=base_url)
            self.store.set_stage(call_id, CallStage.LISTENING)
            return twiml
        except Exception as e:
            logger.error(
                f"[TURN CONTROLLER] Error building session - CallSid: {call_id}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            return self.markup.error()

    def _resolve_greeting(
        self,
        call_id: str,
        greeting_token: Optional[str],
        greeting_text: Optional[str],
    ) -> str:
        staged = self.greetings.claim(call_id, greeting_token)
        if staged:
            logger.debug(f"[TURN CONTROLLER] Using staged greeting - CallSid: {call_id}")
            return staged
        if greeting_text and greeting_text.strip():
            logger.debug(f"[TURN CONTROLLER] Using greeting from request - CallSid: {call_id}")
            return greeting_text.strip()
        return DEFAULT_GREETING

    def handle_speech(
        self,
        call_id: str,
        transcript: Optional[str],
        confidence: Optional[float] = None,
        base_url: str = "",
    ) -> str:
        """
        Answer a speech-result webhook.

        Returns:
            TwiML XML response
        """
        try:
            session = self.store.get(call_id)
            if session is None:
                logger.warning(f"[TURN CONTROLLER] Speech for unknown call - CallSid: {call_id}")
                return self.markup.error()

            text = (transcript or "").strip()
            if not text:
                logger.info(f"[TURN CONTROLLER] Empty transcript, re-prompting - CallSid: {call_id}")
                self.store.set_stage(call_id, CallStage.LISTENING)
                return self.markup.listen_with_retry(EMPTY_SPEECH_PROMPT, base_url=base_url)

            self.store.set_stage(call_id, CallStage.RESPONDING)
            reply, ending = self._respond(text, session)
            self.store.record_exchange(call_id, text, reply)

            logger.info(
                f"[TURN CONTROLLER] Reply ready - CallSid: {call_id}, "
                f"Confidence: {confidence}, End call: {ending.should_end}"
            )

            if ending.should_end:
                twiml = self.markup.speak_and_hangup(reply)
                self._terminate(call_id, reason=f"ending check ({ending.reason.value})")
                return twiml

            self.store.set_stage(call_id, CallStage.LISTENING)
            return self.markup.speak_and_redirect(reply, base_url=base_url)
        except Exception as e:
            logger.error(
                f"[TURN CONTROLLER] Error handling speech - CallSid: {call_id}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            return self.markup.error()

    def _respond(self, text: str, session: CallSession):
        """Classify a transcript and pick the reply."""
        try:
            context = classifier.check_out_of_context(text, session.purpose)
            if context.is_out_of_context:
                logger.info(
                    f"[TURN CONTROLLER] Out-of-context input - CallSid: {session.call_id}, "
                    f"Confidence: {context.confidence}"
                )
                return OUT_OF_CONTEXT_REPLY, EndingCheck(False)
            ending = classifier.check_call_ending(text)
        except Exception as e:
            raise ClassificationError(f"Could not classify transcript: {e}") from e

        try:
            reply = responder.generate_reply(text, session, ending)
        except Exception as e:
            raise GenerationError(f"Could not generate reply: {e}") from e
        return reply, ending

    def handle_status(self, call_id: str, status: Union[CallStatus, str]) -> bool:
        """
        Handle a status-change webhook.

        Returns:
            True if a live session was terminated
        """
        try:
            status = CallStatus(status)
        except ValueError:
            logger.debug(f"[TURN CONTROLLER] Unrecognized status '{status}' - CallSid: {call_id}")
            return False

        if status not in TERMINAL_STATUSES:
            return False

        self.greetings.discard(call_id)
        return self._terminate(call_id, reason=f"status {status}") is not None

    def _terminate(self, call_id: str, reason: str) -> Optional[CallSession]:
        session = self.store.remove(call_id)
        if session is None:
            logger.debug(f"[TURN CONTROLLER] Session already gone - CallSid: {call_id}, Reason: {reason}")
            return None
        logger.info(f"[TURN CONTROLLER] Call terminated - CallSid: {call_id}, Reason: {reason}")
        if session.history:
            logger.debug(f"[TURN CONTROLLER] Transcript for {call_id}:\n{session.get_transcript_text()}")
            logger.info(
                f"[TURN CONTROLLER] Summary for {call_id}:\n"
                f"{responder.summarize_conversation(session)}"
            )
        return session

    def override_purpose(self, call_id: str, purpose: str) -> CallSession:
        """
        Replace the purpose of a live session.

        Raises:
            UnknownSessionError: If the call has no live session
        """
        if not self.store.update_purpose(call_id, purpose):
            raise UnknownSessionError(call_id)
        session = self.store.get(call_id)
        if session is None:
            raise UnknownSessionError(call_id)
        logger.info(f"[TURN CONTROLLER] Purpose overridden - CallSid: {call_id}")
        return session
