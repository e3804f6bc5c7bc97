"""Endpoint descriptors and the routing table used to demultiplex replies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from ..exceptions import UnknownEndpointError

logger = logging.getLogger(__name__)


class EndpointAccess(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class ReplyType(str, Enum):
    """How the OMS answers an endpoint."""

    RESPONSE = "response"
    RESPONSE_AND_EVENT = "response_and_event"


@dataclass(frozen=True, slots=True)
class EndpointDescriptor:
    name: str
    access: EndpointAccess = EndpointAccess.PRIVATE
    reply_type: ReplyType = ReplyType.RESPONSE
    events: tuple[str, ...] = ()

    @property
    def is_stream(self) -> bool:
        return self.reply_type is ReplyType.RESPONSE_AND_EVENT


ACCOUNT_EVENTS: tuple[str, ...] = (
    "AccountPositionEvent",
    "OrderTradeEvent",
    "OrderStateEvent",
    "MarketStateUpdate",
    "PendingDepositUpdate",
    "NewOrderRejectEvent",
    "CancelReplaceOrderRejectEvent",
    "CancelOrderRejectEvent",
    "CancelAllOrdersRejectEvent",
)


def _public(name: str, *events: str) -> EndpointDescriptor:
    reply_type = ReplyType.RESPONSE_AND_EVENT if events else ReplyType.RESPONSE
    return EndpointDescriptor(name, EndpointAccess.PUBLIC, reply_type, events)


def _private(name: str, *events: str) -> EndpointDescriptor:
    reply_type = ReplyType.RESPONSE_AND_EVENT if events else ReplyType.RESPONSE
    return EndpointDescriptor(name, EndpointAccess.PRIVATE, reply_type, events)


_DESCRIPTORS: tuple[EndpointDescriptor, ...] = (
    # Session
    _public("WebAuthenticateUser"),
    _public("Authenticate2FA"),
    _public("LogOut"),
    _public("ResetPassword"),
    # Reference and market data
    _public("GetProduct"),
    _public("GetProducts"),
    _public("GetInstrument"),
    _public("GetInstruments"),
    _public("GetL2Snapshot"),
    _public("GetTickerHistory"),
    _public("SubscribeLevel1", "Level1UpdateEvent"),
    _public("SubscribeLevel2", "Level2UpdateEvent"),
    _public("SubscribeTicker", "TickerDataUpdateEvent"),
    _public("SubscribeTrades", "TradeDataUpdateEvent"),
    _public("UnsubscribeLevel1"),
    _public("UnsubscribeLevel2"),
    _public("UnsubscribeTicker"),
    _public("UnsubscribeTrades"),
    # Orders
    _private("CancelAllOrders"),
    _private("CancelOrder"),
    _private("CancelQuote"),
    _private("CancelReplaceOrder"),
    _private("SendOrder"),
    _private("GetOrderFee"),
    _private("GetOrderHistory"),
    _private("GetOpenOrders"),
    # User
    _private("GetUserPermissions"),
    _private("GetAvailablePermissionList"),
    _private("GetUserConfig"),
    _private("GetUserInfo"),
    _private("SetUserConfig"),
    _private("RemoveUserConfig"),
    _private("SetUserInfo"),
    # Account
    _private("GetAccountInfo"),
    _private("GetAccountPositions"),
    _private("GetAccountTrades"),
    _private("GetAccountTransactions"),
    _private("GetAllDepositTickets"),
    _private("GetAllWithdrawTickets"),
    _private("GetDepositTicket"),
    _private("GetWithdrawTicket"),
    _private("SubscribeAccountEvents", *ACCOUNT_EVENTS),
)

ENDPOINTS: dict[str, EndpointDescriptor] = {d.name: d for d in _DESCRIPTORS}


def build_routes(descriptors: Iterable[EndpointDescriptor]) -> dict[str, EndpointDescriptor]:
    """Map every endpoint name and every event name to the descriptor that owns it.

    Raises:
        ValueError: If a name is claimed by two descriptors
    """
    routes: dict[str, EndpointDescriptor] = {}
    for descriptor in descriptors:
        for name in (descriptor.name, *descriptor.events):
            owner = routes.get(name)
            if owner is not None and owner is not descriptor:
                raise ValueError(f"{name} is routed to both {owner.name} and {descriptor.name}")
            routes[name] = descriptor
    logger.debug("Built %d routes for %d endpoints", len(routes), len({d.name for d in routes.values()}))
    return routes


ROUTES: dict[str, EndpointDescriptor] = build_routes(_DESCRIPTORS)


def get_endpoint(name: str, routes: Mapping[str, EndpointDescriptor] = ROUTES) -> EndpointDescriptor:
    """Look up the descriptor an endpoint or event name routes to."""
    try:
        return routes[name]
    except KeyError:
        raise UnknownEndpointError(name) from None
