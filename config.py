"""
Centralized configuration for hostfit.

Loads environment variables from .env and provides validated paths and settings.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from utils.exceptions import ConfigError

# Load environment variables
load_dotenv()


def parse_timeout(value: str, source: str) -> Optional[float]:
    """Parse a timeout in seconds; an empty value means no timeout."""
    value = value.strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        raise ConfigError(f"{source} must be a number of seconds, got {value!r}")
    if not 0 < seconds < float("inf"):
        raise ConfigError(f"{source} must be a positive, finite number of seconds, got {value!r}")
    return seconds


def get_timeout_var(var_name: str, default: str = "") -> Optional[float]:
    """Retrieve a timeout in seconds from the environment."""
    return parse_timeout(os.getenv(var_name, default), var_name)


# -- Paths -------------------------------------------------------------------


STATE_DIR = Path(os.getenv("HOSTFIT_STATE_DIR", str(Path.home() / ".hostfit"))).expanduser()
LOG_DIR = STATE_DIR / "logs"

# -- Settings -----------------------------------------------------------------

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")


def probe_timeout() -> Optional[float]:
    """Per-command timeout for hardware probes, read at call time."""
    return get_timeout_var("HOSTFIT_PROBE_TIMEOUT")


def validate_config() -> None:
    """Validate that critical paths exist or can be created."""
    for path_var in [STATE_DIR, LOG_DIR]:
        if not path_var.exists():
            try:
                path_var.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                print(f"Warning: Could not create {path_var}: {e}")
