"""Access to the authoritative game service."""
from tycoon.client.network.service import GameService, ServiceError, ServiceUnavailable

__all__ = ["GameService", "ServiceError", "ServiceUnavailable"]
