"""Account event payloads pushed after ``SubscribeAccountEvents``.

The OMS routes every account event through the same subscription, and the
event name on the frame is not always reliable, so the payload's shape
decides its kind. Each shape has one field no other shape carries.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Literal, Union

from pydantic import Field, ValidationError

from ..exceptions import ProtocolError
from .endpoints import ACCOUNT_EVENTS
from .models import FoxbitModel

logger = logging.getLogger(__name__)


class SubscribeAccountEventsResponse(FoxbitModel):
    kind: Literal["SubscribeAccountEventsResponse"] = "SubscribeAccountEventsResponse"
    subscribed: bool


class AccountPositionEvent(FoxbitModel):
    kind: Literal["AccountPositionEvent"] = "AccountPositionEvent"
    oms_id: int | None = Field(default=None, alias="OMSId")
    account_id: int
    product_symbol: str | None = None
    product_id: int | None = None
    amount: float | None = None
    hold: float | None = None
    pending_deposits: float | None = None
    pending_withdraws: float | None = None
    total_day_deposits: float | None = None
    total_day_withdraws: float | None = None
    notional_hold_amount: float | None = None
    notional_rate: float | None = None
    total_day_deposit_notional: float | None = None
    total_month_deposit_notional: float | None = None
    total_day_withdraw_notional: float | None = None
    total_month_withdraw_notional: float | None = None


class OrderTradeEvent(FoxbitModel):
    kind: Literal["OrderTradeEvent"] = "OrderTradeEvent"
    oms_id: int | None = Field(default=None, alias="OMSId")
    trade_id: int | None = None
    order_id: int | None = None
    account_id: int
    client_order_id: int | None = None
    instrument_id: int | None = None
    side: str | None = None
    quantity: float | None = None
    price: float | None = None
    value: float | None = None
    trade_time: int | None = None
    contra_acct_id: int | None = None
    order_trade_revision: int | None = None
    direction: str | None = None
    counter_party_client_user_id: int | None = None
    notional_product_id: int | None = None
    notional_rate: float | None = None
    notional_value: float | None = None


class OrderStateEvent(FoxbitModel):
    kind: Literal["OrderStateEvent"] = "OrderStateEvent"
    side: int | str | None = None
    order_id: int | None = None
    price: float | None = None
    quantity: float | None = None
    instrument: int | None = None
    account: int | None = None
    order_type: int | str | None = None
    client_order_id: int | None = None
    order_state: str | None = None
    receive_time: int | None = None
    orig_quantity: float | None = None
    quantity_executed: float | None = None
    avg_price: float | None = None
    change_reason: str | None = None


class MarketStateUpdate(FoxbitModel):
    kind: Literal["MarketStateUpdate"] = "MarketStateUpdate"
    exchange_id: int | None = None
    venue_adapter_id: int | None = None
    venue_instrument_id: int | None = None
    action: str | None = None
    previous_status: str | None = None
    new_status: str | None = None
    exchange_date_time: str | None = None


class PendingDepositUpdate(FoxbitModel):
    kind: Literal["PendingDepositUpdate"] = "PendingDepositUpdate"
    account_id: int
    asset_id: int | None = None
    total_pending_deposit_value: float | None = None
    requires_2fa: bool | None = Field(default=None, alias="Requires2FA")
    two_fa_type: str | None = Field(default=None, alias="TwoFAType")
    two_fa_token: str | None = Field(default=None, alias="TwoFAToken")


class CancelReplaceOrderRejectEvent(FoxbitModel):
    kind: Literal["CancelReplaceOrderRejectEvent"] = "CancelReplaceOrderRejectEvent"
    oms_id: int | None = Field(default=None, alias="OMSId")
    account_id: int | None = None
    order_id: int | None = None
    client_order_id: int | None = None
    limit_price: float | None = None
    order_id_oco: int | None = Field(default=None, alias="OrderIdOCO")
    order_type: int | str | None = None
    peg_price_type: int | str | None = None
    order_id_to_replace: int | None = None
    instrument_id: int | None = None
    reference_price: float | None = None
    quantity: float | None = None
    side: int | str | None = None
    stop_price: float | None = None
    time_in_force: int | str | None = None
    status: str | None = None
    reject_reason: str | None = None


class CancelOrderRejectEvent(FoxbitModel):
    kind: Literal["CancelOrderRejectEvent"] = "CancelOrderRejectEvent"
    oms_id: int | None = Field(default=None, alias="OMSId")
    account_id: int | None = None
    order_id: int | None = None
    order_revision: int | None = None
    order_type: int | str | None = None
    instrument_id: int | None = None
    status: str | None = None
    reject_reason: str | None = None


class CancelAllOrdersRejectEvent(FoxbitModel):
    kind: Literal["CancelAllOrdersRejectEvent"] = "CancelAllOrdersRejectEvent"
    oms_id: int | None = Field(default=None, alias="OMSId")
    account_id: int | None = None
    instrument_id: int | None = None
    status: str | None = None
    reject_reason: str | None = None


class NewOrderRejectEvent(FoxbitModel):
    kind: Literal["NewOrderRejectEvent"] = "NewOrderRejectEvent"
    oms_id: int | None = Field(default=None, alias="OMSId")
    account_id: int | None = None
    client_order_id: int | None = None
    status: str | None = None
    reject_reason: str | None = None


AccountEvent = Union[
    SubscribeAccountEventsResponse,
    AccountPositionEvent,
    OrderTradeEvent,
    OrderStateEvent,
    MarketStateUpdate,
    PendingDepositUpdate,
    CancelReplaceOrderRejectEvent,
    CancelOrderRejectEvent,
    CancelAllOrdersRejectEvent,
    NewOrderRejectEvent,
]

EVENT_MODELS: dict[str, type[FoxbitModel]] = {
    "SubscribeAccountEventsResponse": SubscribeAccountEventsResponse,
    "AccountPositionEvent": AccountPositionEvent,
    "OrderTradeEvent": OrderTradeEvent,
    "OrderStateEvent": OrderStateEvent,
    "MarketStateUpdate": MarketStateUpdate,
    "PendingDepositUpdate": PendingDepositUpdate,
    "CancelReplaceOrderRejectEvent": CancelReplaceOrderRejectEvent,
    "CancelOrderRejectEvent": CancelOrderRejectEvent,
    "CancelAllOrdersRejectEvent": CancelAllOrdersRejectEvent,
    "NewOrderRejectEvent": NewOrderRejectEvent,
}

# Order matters: the first matching predicate wins.
_SHAPE_PREDICATES: tuple[tuple[str, Callable[[dict[str, Any]], bool]], ...] = (
    ("AccountPositionEvent", lambda obj: "Hold" in obj),
    ("SubscribeAccountEventsResponse", lambda obj: "Subscribed" in obj),
    ("OrderTradeEvent", lambda obj: "NotionalValue" in obj),
    ("OrderStateEvent", lambda obj: "ChangeReason" in obj),
    ("MarketStateUpdate", lambda obj: "Action" in obj),
    ("PendingDepositUpdate", lambda obj: "AssetId" in obj),
    ("CancelReplaceOrderRejectEvent", lambda obj: "ReferencePrice" in obj),
    ("CancelOrderRejectEvent", lambda obj: "OrderRevision" in obj),
    ("CancelAllOrdersRejectEvent", lambda obj: "RejectReason" in obj and "InstrumentId" in obj),
)

_FALLBACK_KIND = "NewOrderRejectEvent"


def detect_event_kind(payload: dict[str, Any], event_name: str | None = None) -> str:
    """Return the account event kind a payload's shape matches.

    Args:
        payload: Decoded event payload
        event_name: Name carried on the frame, used only when no shape matches

    Returns:
        One of the keys of ``EVENT_MODELS``
    """
    for kind, matches in _SHAPE_PREDICATES:
        if matches(payload):
            return kind
    if event_name in ACCOUNT_EVENTS:
        return event_name
    return _FALLBACK_KIND


def classify_account_event(payload: Any, event_name: str | None = None) -> AccountEvent:
    """Parse an account event payload into the model its shape matches."""
    if not isinstance(payload, dict):
        raise ProtocolError(f"Account event payload must be an object, got {type(payload).__name__}")

    kind = detect_event_kind(payload, event_name)
    if event_name and event_name in ACCOUNT_EVENTS and event_name != kind:
        logger.debug("Frame named %s classified as %s by shape", event_name, kind)

    model = EVENT_MODELS[kind]
    data = {k: v for k, v in payload.items() if k != "kind"}
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ProtocolError(f"Malformed {kind}: {exc}") from exc
