"""
Configuration module for beans.

Settings are read from the environment once, at import time. There is no
configuration file.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Ledger store
LEDGER_SUFFIX = ".bean"
DEFAULT_LEDGER_PATH = Path.home() / ".beans" / f"ledger{LEDGER_SUFFIX}"
LEDGER_PATH = Path(os.getenv("BEANS_LEDGER_PATH", str(DEFAULT_LEDGER_PATH))).expanduser()

# Exchange rate source
DEFAULT_RATE_API_URL = "https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1"
RATE_API_URL = os.getenv("BEANS_RATE_API_URL", DEFAULT_RATE_API_URL)
RATE_FALLBACK_URL = os.getenv("BEANS_RATE_FALLBACK_URL") or None
RATE_TTL = float(os.getenv("BEANS_RATE_TTL", "86400"))  # seconds
RATE_TIMEOUT = float(os.getenv("BEANS_RATE_TIMEOUT", "10"))  # seconds

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = os.getenv("BEANS_LOG_LEVEL", "WARNING")


def get_log_level(name: Optional[str] = None) -> int:
    """Get the configured log level."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get((name or LOG_LEVEL).upper(), logging.WARNING)


def configure_logging(level: Optional[str] = None) -> None:
    """Send beans log records to stderr at the given (or configured) level."""
    logger = logging.getLogger("beans")
    for handler in logger.handlers:
        if handler.get_name() == "beans-stderr":
            # Follow sys.stderr if it was replaced since the last call
            handler.setStream(sys.stderr)
            break
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name("beans-stderr")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(get_log_level(level))
