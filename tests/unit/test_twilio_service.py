"""Unit tests for outbound call placement."""
from unittest.mock import Mock

import pytest
import requests
from twilio.base.exceptions import TwilioException, TwilioRestException

from app.core.config import Settings
from app.core.exceptions import (
    ConfigurationError,
    InvalidPhoneNumberError,
    TelephonyError,
)
from app.services.telephony.twilio_service import (
    STATUS_CALLBACK_EVENTS,
    TelephonyService,
    format_phone_number,
)


class TestFormatPhoneNumber:
    """Test E.164 normalization."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("9876543210", "+919876543210"),
            ("98765 43210", "+919876543210"),
            ("+1 (555) 123-4567", "+15551234567"),
            ("15551234567", "+15551234567"),
            ("+919876543210", "+919876543210"),
        ],
    )
    def test_valid_numbers(self, raw, expected):
        """Test numbers that normalize cleanly."""
        assert format_phone_number(raw) == expected

    def test_custom_country_code(self):
        """Test the country code applied to local numbers."""
        assert format_phone_number("5551234567", default_country_code="1") == "+15551234567"

    @pytest.mark.parametrize("raw", ["", "12345", "123456789", "1234567890123456", "0123456789012"])
    def test_invalid_numbers(self, raw):
        """Test numbers that cannot be normalized."""
        with pytest.raises(InvalidPhoneNumberError):
            format_phone_number(raw)

    def test_invalid_number_is_value_error(self):
        """Test that callers catching ValueError still see the failure."""
        with pytest.raises(ValueError):
            format_phone_number("abc")


class TestPlaceCall:
    """Test call placement."""

    def test_call_parameters(self, telephony_service, fake_twilio_client, greeting_store):
        """Test the parameters sent to Twilio."""
        placed = telephony_service.place_call("9876543210", message="Hello Sam")

        kwargs = fake_twilio_client.calls.create.call_args.kwargs
        assert kwargs["to"] == "+919876543210"
        assert kwargs["from_"] == "+15550001111"
        assert kwargs["url"].startswith(
            "https://agent.example.test/webhooks/voice/incoming?greetingToken=tmp_"
        )
        assert kwargs["method"] == "POST"
        assert kwargs["timeout"] == 30
        assert kwargs["record"] is False
        assert kwargs["status_callback"] == "https://agent.example.test/webhooks/voice/status"
        assert kwargs["status_callback_event"] == STATUS_CALLBACK_EVENTS
        assert kwargs["status_callback_method"] == "POST"
        assert "time_limit" not in kwargs

        assert placed.call_id == "CA1234567890"
        assert placed.status == "queued"
        assert placed.to == "+919876543210"

    def test_greeting_rekeyed_to_call_id(self, telephony_service, greeting_store):
        """Test that the staged greeting moves under the assigned call id."""
        telephony_service.place_call("9876543210", message="Hello Sam")

        assert len(greeting_store) == 1
        assert greeting_store.claim("CA1234567890") == "Hello Sam"

    def test_no_message_stages_nothing(self, telephony_service, fake_twilio_client, greeting_store):
        """Test that a call without a greeting uses the plain webhook URL."""
        telephony_service.place_call("9876543210")

        kwargs = fake_twilio_client.calls.create.call_args.kwargs
        assert kwargs["url"] == "https://agent.example.test/webhooks/voice/incoming"
        assert len(greeting_store) == 0

    def test_overrides(self, telephony_service, fake_twilio_client):
        """Test per-call ring timeout, recording and duration cap."""
        telephony_service.place_call("9876543210", timeout=15, record=True, max_duration=300)

        kwargs = fake_twilio_client.calls.create.call_args.kwargs
        assert kwargs["timeout"] == 15
        assert kwargs["record"] is True
        assert kwargs["time_limit"] == 300

    def test_twilio_error(self, telephony_service, fake_twilio_client, greeting_store):
        """Test that a Twilio rejection drops the staged greeting."""
        fake_twilio_client.calls.create.side_effect = TwilioRestException(
            400, "/Calls", msg="Account not authorized to call this number"
        )

        with pytest.raises(TelephonyError, match="not authorized"):
            telephony_service.place_call("9876543210", message="Hello")

        assert len(greeting_store) == 0

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.ConnectionError("connection reset"),
            requests.exceptions.Timeout("read timed out"),
            TwilioException("Credentials are required"),
        ],
    )
    def test_transport_error(self, telephony_service, fake_twilio_client, greeting_store, error):
        """Test that a failure before Twilio answers is reported and drops the greeting."""
        fake_twilio_client.calls.create.side_effect = error

        with pytest.raises(TelephonyError):
            telephony_service.place_call("+15551234567", message="Hi there")

        assert len(greeting_store) == 0

    def test_unexpected_error_drops_greeting(self, telephony_service, fake_twilio_client, greeting_store):
        """Test that no failure leaves a staged greeting behind."""
        fake_twilio_client.calls.create.side_effect = RuntimeError("client bug")

        with pytest.raises(RuntimeError):
            telephony_service.place_call("+15551234567", message="Hi there")

        assert len(greeting_store) == 0

    def test_invalid_number_never_dials(self, telephony_service, fake_twilio_client, greeting_store):
        """Test that normalization fails before anything is staged."""
        with pytest.raises(InvalidPhoneNumberError):
            telephony_service.place_call("123", message="Hello")

        fake_twilio_client.calls.create.assert_not_called()
        assert len(greeting_store) == 0

    def test_not_configured(self, unconfigured_telephony_service):
        """Test placement without credentials."""
        assert unconfigured_telephony_service.is_configured is False

        with pytest.raises(ConfigurationError):
            unconfigured_telephony_service.place_call("9876543210")

    def test_missing_base_url(self, greeting_store):
        """Test placement without a public webhook URL."""
        settings = Settings(
            twilio_account_sid="ACtest",
            twilio_auth_token="test-token",
            twilio_phone_number="+15550001111",
            base_url=None,
        )
        service = TelephonyService(settings, greeting_store, client=Mock())

        with pytest.raises(ConfigurationError, match="BASE_URL"):
            service.place_call("9876543210")


class TestCallStatus:
    """Test status lookup."""

    def test_get_call_status(self, telephony_service, fake_twilio_client):
        """Test the status fields returned."""
        status = telephony_service.get_call_status("CA1234567890")

        fake_twilio_client.calls.assert_called_with("CA1234567890")
        assert status["call_id"] == "CA1234567890"
        assert status["status"] == "in-progress"
        assert status["direction"] == "outbound-api"

    def test_lookup_error(self, telephony_service, fake_twilio_client):
        """Test a failed lookup."""
        fake_twilio_client.calls.return_value.fetch.side_effect = TwilioRestException(
            404, "/Calls/CA404", msg="Not found"
        )

        with pytest.raises(TelephonyError):
            telephony_service.get_call_status("CA404")

    def test_lookup_transport_error(self, telephony_service, fake_twilio_client):
        """Test a lookup that never reaches Twilio."""
        fake_twilio_client.calls.return_value.fetch.side_effect = requests.exceptions.ConnectionError(
            "connection reset"
        )

        with pytest.raises(TelephonyError, match="connection reset"):
            telephony_service.get_call_status("CA1")

    def test_not_configured(self, unconfigured_telephony_service):
        """Test lookup without credentials."""
        with pytest.raises(ConfigurationError):
            unconfigured_telephony_service.get_call_status("CA1")
