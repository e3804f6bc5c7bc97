"""foxbit: async client for the FoxBit WebSocket API."""

from .client import FoxbitClient, Subscription
from .exceptions import FoxbitAPIError, FoxbitError
from .settings import Settings

__all__ = [
    "FoxbitClient",
    "Subscription",
    "FoxbitAPIError",
    "FoxbitError",
    "Settings",
]
