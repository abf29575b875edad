"""Logging configuration."""
import logging
import sys
from typing import Optional

from app.core.config import settings

# Twilio's HTTP client logs full request bodies, phone numbers included
QUIET_LOGGERS = ("httpx", "twilio", "twilio.http_client")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure application logging at the configured level."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
