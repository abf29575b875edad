"""Application configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_AGENT_PROMPT = (
    "You are a helpful AI assistant for scheduling meetings and managing appointments. "
    "Help users with meeting scheduling, calendar management, and appointment coordination."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Twilio (missing credentials leave the telephony service "not ready")
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None

    # Public URL the gateway uses to reach the webhooks
    base_url: Optional[str] = None

    # Voice delivery
    call_voice: str = "alice"
    call_language: str = "en-US"

    # Speech capture
    speech_language: str = "en-US"
    speech_timeout: str = "auto"
    speech_model: str = "phone_call"
    speech_enhanced: bool = True
    gather_timeout: int = 5

    # Outbound calls
    call_timeout: int = 30
    call_record: bool = False
    call_max_duration: Optional[int] = None
    default_country_code: str = "91"

    # Conversation
    default_agent_prompt: str = DEFAULT_AGENT_PROMPT

    # Idle session eviction (0 disables the sweep)
    session_idle_timeout_seconds: int = 3600
    session_sweep_interval_seconds: int = 60

    # Server
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def twilio_configured(self) -> bool:
        """Whether all Twilio credentials are present."""
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_phone_number
        )


settings = Settings()
