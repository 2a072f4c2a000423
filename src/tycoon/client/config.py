"""
Client configuration loaded from environment variables.

No .env file dependency - use system environment variables or CLI arguments.
CLI args > Environment variables > Defaults
"""
import os

from tycoon.shared.constants import INACTIVITY_SECONDS, TURN_TOTAL_SECONDS

POLL_INTERVAL_MIN = 8.0
POLL_INTERVAL_MAX = 20.0


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def clamp_poll_interval(seconds: float) -> float:
    return max(POLL_INTERVAL_MIN, min(POLL_INTERVAL_MAX, seconds))


class ClientSettings:
    """Client configuration."""

    # Service
    service_host: str = os.getenv("TYCOON_SERVICE_HOST", "127.0.0.1")
    service_port: int = int(os.getenv("TYCOON_SERVICE_PORT", "8765"))
    request_timeout: float = float(os.getenv("TYCOON_REQUEST_TIMEOUT", "15"))

    # Logging
    log_level: str = os.getenv("TYCOON_LOG_LEVEL", "INFO")

    # Reconciliation
    poll_interval: float = clamp_poll_interval(float(os.getenv("TYCOON_POLL_INTERVAL", "8")))
    poll_min_gap: float = float(os.getenv("TYCOON_POLL_MIN_GAP", "2"))

    # Turn timing
    turn_total_seconds: float = float(os.getenv("TYCOON_TURN_SECONDS", str(TURN_TOTAL_SECONDS)))
    inactivity_seconds: float = float(os.getenv("TYCOON_INACTIVITY_SECONDS", str(INACTIVITY_SECONDS)))
    move_step_delay: float = float(os.getenv("TYCOON_MOVE_STEP_DELAY", "0"))  # animation pacing only
    roll_delay: float = float(os.getenv("TYCOON_ROLL_DELAY", "0"))

    # Rules
    reroll_on_twelve: bool = _env_bool("TYCOON_REROLL_ON_TWELVE", False)
    auto_end_turn: bool = _env_bool("TYCOON_AUTO_END_TURN", True)

    @classmethod
    def from_args(cls, host: str = None, port: int = None, poll_interval: float = None,
                  log_level: str = None) -> "ClientSettings":
        """Apply CLI overrides."""
        if host:
            cls.service_host = host
        if port:
            cls.service_port = port
        if poll_interval:
            cls.poll_interval = clamp_poll_interval(poll_interval)
        if log_level:
            cls.log_level = log_level
        return cls


settings = ClientSettings()
