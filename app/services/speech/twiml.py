"""TwiML rendering for the call's voice responses."""
from typing import Optional

from twilio.twiml.voice_response import Gather, VoiceResponse

from app.core.config import Settings
from app.services.agent.constants import (
    ERROR_APOLOGY,
    NO_INPUT_GOODBYE,
    NO_INPUT_RETRY_PROMPT,
    SPEAK_NOW_PROMPT,
)

SPEECH_WEBHOOK_PATH = "/webhooks/voice/speech"
INCOMING_WEBHOOK_PATH = "/webhooks/voice/incoming"


class VoiceMarkupBuilder:
    """Renders turn decisions into TwiML documents."""

    def __init__(
        self,
        voice: str = "alice",
        language: str = "en-US",
        speech_language: str = "en-US",
        speech_timeout: str = "auto",
        speech_model: str = "phone_call",
        enhanced: bool = True,
        gather_timeout: int = 5,
        speech_path: str = SPEECH_WEBHOOK_PATH,
        incoming_path: str = INCOMING_WEBHOOK_PATH,
    ):
        self.voice = voice
        self.language = language
        self.speech_language = speech_language
        self.speech_timeout = speech_timeout
        self.speech_model = speech_model
        self.enhanced = enhanced
        self.gather_timeout = gather_timeout
        self.speech_path = speech_path
        self.incoming_path = incoming_path

    @classmethod
    def from_settings(cls, settings: Settings) -> "VoiceMarkupBuilder":
        """Build a markup builder from application settings."""
        return cls(
            voice=settings.call_voice,
            language=settings.call_language,
            speech_language=settings.speech_language,
            speech_timeout=settings.speech_timeout,
            speech_model=settings.speech_model,
            enhanced=settings.speech_enhanced,
            gather_timeout=settings.gather_timeout,
        )

    def _say(self, parent, text: str) -> None:
        parent.say(text, voice=self.voice, language=self.language)

    def _gather(self, base_url: str, prompt: Optional[str] = None) -> Gather:
        gather = Gather(
            input="speech",
            action=f"{base_url}{self.speech_path}",
            method="POST",
            speech_timeout=self.speech_timeout,
            language=self.speech_language,
            speech_model=self.speech_model,
            enhanced="true" if self.enhanced else "false",
            timeout=self.gather_timeout,
        )
        if prompt:
            self._say(gather, prompt)
        return gather

    def listen_with_retry(self, utterance: Optional[str] = None, base_url: str = "") -> str:
        """
        Speak, open a capture window and re-prompt once before hanging up.

        An empty utterance renders a listen-only document.
        """
        vr = VoiceResponse()
        if utterance:
            self._say(vr, utterance)
        vr.append(self._gather(base_url))
        self._say(vr, NO_INPUT_RETRY_PROMPT)
        vr.append(self._gather(base_url, prompt=SPEAK_NOW_PROMPT))
        self._say(vr, NO_INPUT_GOODBYE)
        vr.hangup()
        return str(vr)

    def speak_and_redirect(self, utterance: str, base_url: str = "") -> str:
        """Speak, then send the gateway back to the incoming webhook."""
        vr = VoiceResponse()
        self._say(vr, utterance)
        vr.redirect(f"{base_url}{self.incoming_path}", method="POST")
        return str(vr)

    def speak_and_hangup(self, utterance: str) -> str:
        """Speak, then end the call."""
        vr = VoiceResponse()
        self._say(vr, utterance)
        vr.hangup()
        return str(vr)

    def error(self) -> str:
        """Fixed apology that ends the call."""
        return self.speak_and_hangup(ERROR_APOLOGY)
