"""WebSocket client for the FoxBit gateway."""

from .connection import ReconnectPolicy, WebSocketConnection
from .dispatcher import Dispatcher
from .factory import create_client_from_settings
from .foxbit import DEFAULT_URL, FoxbitClient
from .subscription import Subscription

__all__ = [
    "DEFAULT_URL",
    "Dispatcher",
    "FoxbitClient",
    "ReconnectPolicy",
    "Subscription",
    "WebSocketConnection",
    "create_client_from_settings",
]
