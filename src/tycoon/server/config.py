"""
Game service configuration loaded from environment variables.

No .env file dependency - use system environment variables or CLI arguments.
"""
import os
from typing import Optional


class Config:
    """Game service configuration."""

    # Server settings
    HOST: str = os.getenv("TYCOON_SERVER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("TYCOON_SERVER_PORT", "8765"))

    # Logging
    LOG_LEVEL: str = os.getenv("TYCOON_LOG_LEVEL", "INFO")

    # Game settings
    MIN_PLAYERS: int = 2
    MAX_PLAYERS: int = 8
    GAME_DURATION: Optional[int] = int(os.getenv("TYCOON_GAME_DURATION", "0")) or None  # minutes
    CARD_SEED: Optional[int] = int(os.getenv("TYCOON_CARD_SEED")) if os.getenv("TYCOON_CARD_SEED") else None

    @classmethod
    def from_args(cls, host: str = None, port: int = None, duration: int = None) -> 'Config':
        """
        Create config with CLI overrides.

        CLI args > Environment variables > Defaults
        """
        if host:
            cls.HOST = host
        if port:
            cls.PORT = port
        if duration:
            cls.GAME_DURATION = duration
        return cls


config = Config()
