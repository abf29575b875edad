"""Shared test fixtures and configuration."""
import os
import xml.etree.ElementTree as ET
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("BASE_URL", "https://agent.example.test")
os.environ.setdefault("SESSION_IDLE_TIMEOUT_SECONDS", "0")
for name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"):
    os.environ.pop(name, None)

from app.main import app
from app.core.config import Settings
from app.core.dependencies import (
    get_greeting_store,
    get_session_store,
    get_telephony_service,
    get_turn_controller,
)
from app.services.call_session.greetings import PendingGreetingStore
from app.services.call_session.manager import TurnController
from app.services.call_session.store import SessionStore
from app.services.speech.twiml import VoiceMarkupBuilder
from app.services.telephony.twilio_service import TelephonyService

TEST_PURPOSE = "schedule a meeting"


def parse_twiml(twiml: str) -> ET.Element:
    """Parse a TwiML document into its <Response> element."""
    return ET.fromstring(twiml.encode("utf-8"))


def verbs(twiml: str) -> list:
    """Top-level verb names of a TwiML document."""
    return [child.tag for child in parse_twiml(twiml)]


def spoken(twiml: str) -> list:
    """Every <Say> text in document order, including nested ones."""
    return [say.text for say in parse_twiml(twiml).iter("Say")]


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return Settings(
        twilio_account_sid="ACtest",
        twilio_auth_token="test-token",
        twilio_phone_number="+15550001111",
        base_url="https://agent.example.test",
        default_agent_prompt=TEST_PURPOSE,
        session_idle_timeout_seconds=0,
    )


@pytest.fixture
def session_store():
    """Fresh session store."""
    return SessionStore()


@pytest.fixture
def greeting_store():
    """Fresh pending greeting store."""
    return PendingGreetingStore()


@pytest.fixture
def markup():
    """Markup builder with default delivery parameters."""
    return VoiceMarkupBuilder()


@pytest.fixture
def controller(session_store, greeting_store, markup):
    """Turn controller over fresh stores."""
    return TurnController(session_store, greeting_store, markup, default_purpose=TEST_PURPOSE)


@pytest.fixture
def fake_twilio_client():
    """Mock Twilio REST client."""
    client = Mock()
    client.calls.create.return_value = Mock(sid="CA1234567890", status="queued")
    client.calls.return_value.fetch.return_value = Mock(
        sid="CA1234567890",
        status="in-progress",
        duration=None,
        direction="outbound-api",
        start_time=None,
        end_time=None,
    )
    return client


@pytest.fixture
def telephony_service(test_settings, greeting_store, fake_twilio_client):
    """Telephony service backed by the mock Twilio client."""
    return TelephonyService(test_settings, greeting_store, client=fake_twilio_client)


@pytest.fixture
def unconfigured_telephony_service(greeting_store):
    """Telephony service without credentials."""
    settings = Settings(
        twilio_account_sid=None,
        twilio_auth_token=None,
        twilio_phone_number=None,
        base_url="https://agent.example.test",
    )
    return TelephonyService(settings, greeting_store)


@pytest.fixture
def app_overrides(session_store, greeting_store, controller, telephony_service):
    """Point the app's dependencies at the test fixtures."""
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_greeting_store] = lambda: greeting_store
    app.dependency_overrides[get_turn_controller] = lambda: controller
    app.dependency_overrides[get_telephony_service] = lambda: telephony_service

    yield app

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture
def test_client(app_overrides):
    """Create FastAPI test client with overrides."""
    return TestClient(app_overrides)
