"""Outbound call placement through the Twilio REST API."""
import logging
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel
from requests import RequestException
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from app.core.config import Settings
from app.core.exceptions import (
    ConfigurationError,
    InvalidPhoneNumberError,
    TelephonyError,
)
from app.services.call_session.greetings import PendingGreetingStore
from app.services.speech.twiml import INCOMING_WEBHOOK_PATH

logger = logging.getLogger(__name__)

STATUS_WEBHOOK_PATH = "/webhooks/voice/status"
STATUS_CALLBACK_EVENTS = ["initiated", "ringing", "answered", "completed"]

_E164_PATTERN = re.compile(r"^\+[1-9]\d{9,14}$")

# API rejections and transport failures from the REST client
GATEWAY_ERRORS = (TwilioException, RequestException)


def _error_message(error: Exception) -> str:
    return str(getattr(error, "msg", None) or error)


class PlacedCall(BaseModel):
    """Result of a successful outbound call placement."""

    call_id: str
    status: str
    to: str


def format_phone_number(phone_number: str, default_country_code: str = "91") -> str:
    """
    Normalize a phone number to E.164.

    Ten-digit numbers are assumed to be local and get the default country
    code; longer numbers are taken to already carry one.

    Raises:
        InvalidPhoneNumberError: If the number has the wrong digit count
    """
    raw = (phone_number or "").strip()
    digits = re.sub(r"\D", "", raw)

    if not 10 <= len(digits) <= 15:
        raise InvalidPhoneNumberError(f"Invalid phone number format: {phone_number!r}")

    if len(digits) == 10 and not raw.startswith("+"):
        formatted = f"+{default_country_code}{digits}"
    else:
        formatted = f"+{digits}"

    if not _E164_PATTERN.match(formatted):
        raise InvalidPhoneNumberError(f"Invalid phone number format: {phone_number!r}")
    return formatted


class TelephonyService:
    """Places outbound calls and looks up their status.

    Missing credentials do not raise at construction; the service reports
    itself as not configured and placement fails with ConfigurationError.
    """

    def __init__(
        self,
        settings: Settings,
        greetings: PendingGreetingStore,
        client: Optional[TwilioClient] = None,
    ):
        self.settings = settings
        self.greetings = greetings
        self.client = client

        if self.client is None and settings.twilio_configured:
            self.client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)

        if self.client is not None:
            logger.info(f"[TELEPHONY] Twilio configured with phone: {settings.twilio_phone_number}")
        else:
            logger.warning(
                "[TELEPHONY] Twilio credentials not configured - set TWILIO_ACCOUNT_SID, "
                "TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER to enable calls"
            )

    @property
    def is_configured(self) -> bool:
        """Check if Twilio is properly configured."""
        return self.client is not None

    def _webhook_url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}{path}"

    def place_call(
        self,
        to: str,
        message: Optional[str] = None,
        timeout: Optional[int] = None,
        record: Optional[bool] = None,
        max_duration: Optional[int] = None,
    ) -> PlacedCall:
        """Start an outbound call.

        Args:
            to: Destination number, normalized to E.164
            message: Greeting spoken when the callee answers
            timeout: Seconds to let the phone ring
            record: Whether the gateway records the call
            max_duration: Hard cap on call length in seconds

        Returns:
            PlacedCall with the gateway's call SID and initial status

        Raises:
            ConfigurationError: If Twilio or the base URL is not configured
            InvalidPhoneNumberError: If the number is malformed
            TelephonyError: If the Twilio API call fails
        """
        if not self.is_configured:
            raise ConfigurationError("Twilio service not properly configured")
        if not self.settings.base_url:
            raise ConfigurationError("BASE_URL not configured - required for Twilio webhooks")

        formatted = format_phone_number(to, self.settings.default_country_code)

        voice_url = self._webhook_url(INCOMING_WEBHOOK_PATH)
        token = None
        if message and message.strip():
            token = self.greetings.stage(message.strip())
            voice_url = f"{voice_url}?greetingToken={token}"

        params: Dict[str, Any] = {
            "to": formatted,
            "from_": self.settings.twilio_phone_number,
            "url": voice_url,
            "method": "POST",
            "timeout": timeout or self.settings.call_timeout,
            "record": self.settings.call_record if record is None else record,
            "status_callback": self._webhook_url(STATUS_WEBHOOK_PATH),
            "status_callback_event": STATUS_CALLBACK_EVENTS,
            "status_callback_method": "POST",
        }
        time_limit = max_duration or self.settings.call_max_duration
        if time_limit:
            params["time_limit"] = time_limit

        logger.info(f"[TELEPHONY] Initiating call to {formatted}")
        call = None
        try:
            call = self.client.calls.create(**params)
        except GATEWAY_ERRORS as e:
            logger.error(f"[TELEPHONY] Call to {formatted} failed: {type(e).__name__}: {_error_message(e)}")
            raise TelephonyError(_error_message(e)) from e
        finally:
            # A greeting for a call that was never placed would never be claimed
            if token and call is None:
                self.greetings.discard(token)

        if token:
            self.greetings.rekey(token, call.sid)

        logger.info(f"[TELEPHONY] Call initiated - CallSid: {call.sid}, Status: {call.status}")
        return PlacedCall(call_id=call.sid, status=str(call.status), to=formatted)

    def get_call_status(self, call_id: str) -> Dict[str, Any]:
        """Fetch a call's current status from Twilio.

        Raises:
            ConfigurationError: If Twilio is not configured
            TelephonyError: If the lookup fails
        """
        if not self.is_configured:
            raise ConfigurationError("Twilio service not properly configured")

        try:
            call = self.client.calls(call_id).fetch()
        except GATEWAY_ERRORS as e:
            logger.error(
                f"[TELEPHONY] Status lookup failed - CallSid: {call_id}, "
                f"Error: {type(e).__name__}: {_error_message(e)}"
            )
            raise TelephonyError(_error_message(e)) from e

        return {
            "call_id": call.sid,
            "status": str(call.status),
            "duration": call.duration,
            "direction": call.direction,
            "start_time": call.start_time,
            "end_time": call.end_time,
        }
