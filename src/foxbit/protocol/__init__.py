"""AlphaPoint wire protocol: frames, endpoint table and payload models."""

from .endpoints import (
    ACCOUNT_EVENTS,
    ENDPOINTS,
    ROUTES,
    EndpointAccess,
    EndpointDescriptor,
    ReplyType,
    build_routes,
    get_endpoint,
)
from .enums import MessageType
from .events import AccountEvent, classify_account_event, detect_event_kind
from .frame import MessageFrame, SequenceCounter

__all__ = [
    "ACCOUNT_EVENTS",
    "ENDPOINTS",
    "ROUTES",
    "EndpointAccess",
    "EndpointDescriptor",
    "ReplyType",
    "build_routes",
    "get_endpoint",
    "MessageType",
    "AccountEvent",
    "classify_account_event",
    "detect_event_kind",
    "MessageFrame",
    "SequenceCounter",
]
