"""Typed request and reply payloads.

Wire payloads use the OMS' PascalCase keys. Models expose snake_case
attributes; irregular wire keys (``OMSId``, ``Use2FA``, lowercase error keys)
carry an explicit alias. Unknown keys are kept so newer OMS fields are not lost.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_pascal

from .enums import (
    AmountOperator,
    MakerTaker,
    OrderType,
    PegPriceType,
    Side,
    TimeInForce,
)


class FoxbitModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="allow",
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump under wire names, dropping unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Generic replies
# ---------------------------------------------------------------------------


class GenericResponse(FoxbitModel):
    result: bool = Field(alias="result")
    errormsg: str | None = Field(default=None, alias="errormsg")
    errorcode: int | None = Field(default=None, alias="errorcode")
    detail: str | None = Field(default=None, alias="detail")


class UserConfigEntry(FoxbitModel):
    key: str
    value: str | None = None


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class AuthenticateResponse(FoxbitModel):
    authenticated: bool = False
    session_token: str | None = None
    user_id: int | None = None
    requires_2fa: bool = Field(default=False, alias="Requires2FA")
    auth_type: str | None = None
    two_fa_token: str | None = Field(
        default=None,
        alias="TwoFAToken",
        validation_alias=AliasChoices("TwoFAToken", "twoFaToken"),
    )
    errormsg: str | None = Field(default=None, alias="errormsg")


class UserInfo(FoxbitModel):
    user_id: int
    user_name: str | None = None
    email: str | None = None
    password_hash: str | None = None
    pending_email_code: str | None = None
    email_verified: bool | None = None
    account_id: int | None = None
    date_time_created: Any = None
    affiliate_id: int | None = Field(
        default=None,
        alias="AffiliateId",
        validation_alias=AliasChoices("AffiliateId", "AffiliatedId"),
    )
    referer_id: int | None = None
    oms_id: int | None = Field(default=None, alias="OMSId")
    use_2fa: bool | None = Field(default=None, alias="Use2FA")
    salt: str | None = None
    pending_code_time: Any = None


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


class Product(FoxbitModel):
    oms_id: int = Field(alias="OMSId")
    product_id: int
    product: str
    product_full_name: str | None = None
    product_type: int | str | None = None
    decimal_places: int | None = None
    tick_size: float | None = None
    no_fees: bool | None = None


class Instrument(FoxbitModel):
    oms_id: int = Field(alias="OMSId")
    instrument_id: int
    symbol: str
    product1: int | None = None
    product1_symbol: str | None = None
    product2: int | None = None
    product2_symbol: str | None = None
    instrument_type: int | str | None = None
    venue_instrument_id: int | None = None
    venue_id: int | None = None
    sort_index: int | None = None
    session_status: int | str | None = None
    previous_session_status: int | str | None = None
    session_status_date_time: Any = None
    self_trade_prevention: bool | None = None
    quantity_increment: float | None = None


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


class Level1(FoxbitModel):
    """Level 1 snapshot; also the shape of ``Level1UpdateEvent``."""

    oms_id: int | None = Field(default=None, alias="OMSId")
    instrument_id: int
    best_bid: float | None = None
    best_offer: float | None = None
    last_traded_px: float | None = None
    last_traded_qty: float | None = None
    last_trade_time: int | None = None
    session_open: float | None = None
    session_high: float | None = None
    session_low: float | None = None
    session_close: float | None = None
    volume: float | None = None
    current_day_volume: float | None = None
    current_day_num_trades: int | None = None
    current_day_px_change: float | None = None
    rolling_24hr_volume: float | None = Field(default=None, alias="Rolling24HrVolume")
    rolling_24_num_trades: int | None = Field(default=None, alias="Rolling24NumTrades")
    rolling_24hr_px_change: float | None = Field(default=None, alias="Rolling24HrPxChange")
    time_stamp: int | str | None = None


class L2Entry(FoxbitModel):
    """One order book level from ``GetL2Snapshot`` or ``Level2UpdateEvent``."""

    md_update_id: int = Field(alias="MDUpdateID")
    accounts: int
    action_date_time: int
    action_type: int
    last_trade_price: float
    orders: int
    price: float
    product_pair_code: int
    quantity: float
    side: int


class Tick(FoxbitModel):
    """One OHLCV candle from ``GetTickerHistory`` or ``TickerDataUpdateEvent``."""

    ticker_date: int
    high: float
    low: float
    open: float
    close: float
    volume: float
    bid_price: float
    ask_price: float
    instrument_id: int


class PublicTrade(FoxbitModel):
    """One trade from ``SubscribeTrades`` or ``TradeDataUpdateEvent``."""

    trade_id: int
    product_pair_code: int
    quantity: float
    price: float
    order1: int
    order2: int
    trade_time: int = Field(alias="Tradetime")
    direction: int
    taker_side: int
    block_trade: bool
    order1or2_client_id: int | None = Field(default=None, alias="Order1or2ClientId")


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


class AccountInfo(FoxbitModel):
    oms_id: int | None = Field(default=None, alias="OMSID")
    account_id: int
    account_name: str | None = None
    account_handle: str | None = None
    firm_id: str | None = None
    firm_name: str | None = None
    account_type: str | None = None
    fee_group_id: int | None = Field(default=None, alias="FeeGroupID")
    parent_id: int | None = Field(default=None, alias="ParentID")
    risk_type: str | None = None
    verification_level: int | None = None
    fee_product_type: str | None = None
    fee_product: int | None = None
    referer_id: int | None = None
    supported_venue_ids: list[int] = Field(default_factory=list)


class AccountPosition(FoxbitModel):
    oms_id: int | None = Field(default=None, alias="OMSId")
    account_id: int
    product_symbol: str
    product_id: int
    amount: float
    hold: float = 0.0
    pending_deposits: float = 0.0
    pending_withdraws: float = 0.0
    total_day_deposits: float = 0.0
    total_day_withdraws: float = 0.0
    total_month_withdraws: float = 0.0

    @property
    def available(self) -> float:
        return self.amount - self.hold


class AccountTrade(FoxbitModel):
    """A trade or transaction report for the account."""

    trade_time_ms: int | None = Field(default=None, alias="TradeTimeMS")
    fee: float | None = None
    fee_product_id: int | None = None
    order_originator: int | None = None
    oms_id: int | None = Field(default=None, alias="OMSId")
    execution_id: int | None = None
    trade_id: int | None = None
    order_id: int | None = None
    account_id: int | None = None
    sub_account_id: int | None = None
    client_order_id: int | None = None
    instrument_id: int | None = None
    side: str | None = None
    quantity: float | None = None
    remaining_quantity: float | None = None
    price: float | None = None
    value: float | None = None
    trade_time: int | None = None
    counter_party: int | str | None = None
    order_trade_revision: int | None = None
    direction: int | str | None = None
    is_block_trade: bool | None = None
    order_type: int | str | None = None
    maker_taker: str | None = None
    adapter_trade_id: int | None = None
    inside_bid: float | None = None
    inside_bid_size: float | None = None
    inside_ask: float | None = None
    inside_ask_size: float | None = None
    is_quote: bool | int | None = None


class OrderInfo(FoxbitModel):
    """An order as reported by ``GetOpenOrders`` and ``GetOrderHistory``."""

    side: int | str
    order_id: int
    price: float
    quantity: float
    display_quantity: float | None = None
    instrument: int
    account: int
    order_type: int | str
    client_order_id: int | None = None
    order_state: str
    receive_time: int | None = None
    receive_time_ticks: int | None = None
    orig_quantity: float | None = None
    quantity_executed: float | None = None
    avg_price: float | None = None
    counter_party_id: int | None = None
    change_reason: str | None = None
    orig_order_id: int | None = None
    orig_cl_ord_id: int | None = None
    entered_by: int | None = None
    is_quote: bool | None = None
    inside_ask: float | None = None
    inside_ask_size: float | None = None
    inside_bid: float | None = None
    inside_bid_size: float | None = None
    last_trade_price: float | None = None
    reject_reason: str | None = None
    is_locked_in: bool | None = None
    oms_id: int | None = Field(default=None, alias="OMSId")


class SendOrderResult(FoxbitModel):
    status: str = Field(alias="status")
    errormsg: str | None = Field(default=None, alias="errormsg")
    order_id: int | None = None

    @property
    def accepted(self) -> bool:
        return self.status == "Accepted"


class CancelReplaceOrderResult(FoxbitModel):
    replacement_order_id: int
    replacement_cl_ord_id: int | None = None
    orig_order_id: int | None = None
    orig_cl_ord_id: int | None = None


class OrderFee(FoxbitModel):
    order_fee: float
    product_id: int


class DepositTicket(FoxbitModel):
    asset_manager_id: int | None = None
    account_id: int
    asset_id: int
    asset_name: str | None = None
    amount: float
    oms_id: int | None = Field(default=None, alias="OMSId")
    request_code: str
    request_ip: str | None = Field(default=None, alias="RequestIP")
    request_user: int | None = None
    request_user_name: str | None = None
    operator_id: int | None = None
    status: int | str
    fee_amt: float | None = None
    updated_by_user: int | None = None
    updated_by_user_name: str | None = None
    ticket_number: int | None = None
    deposit_info: Any = None
    created_timestamp: str | None = None
    last_update_time_stamp: str | None = None
    comments: list[Any] | None = None
    attachments: list[Any] | None = None


class WithdrawTemplateForm(FoxbitModel):
    template_type: str | None = None
    comment: str | None = None
    external_address: str | None = None


class WithdrawTicket(FoxbitModel):
    asset_manager_id: int | None = None
    account_id: int
    asset_id: int
    asset_name: str | None = None
    amount: float
    template_form: WithdrawTemplateForm | str | None = None
    template_form_type: str | None = None
    oms_id: int | None = Field(default=None, alias="OMSId")
    request_code: str
    request_ip: str | None = Field(default=None, alias="RequestIP")
    request_user_id: int | None = None
    request_user_name: str | None = None
    operator_id: int | None = None
    status: int | str
    fee_amt: float | None = None
    updated_by_user: int | None = None
    updated_by_user_name: str | None = None
    ticket_number: int | None = None
    created_timestamp: str | None = None
    last_update_timestamp: str | None = None
    comments: list[Any] | None = None
    attachments: list[Any] | None = None
    audit_log: list[Any] | None = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SendOrderRequest(FoxbitModel):
    oms_id: int = Field(alias="OMSId")
    account_id: int
    instrument_id: int
    side: Side
    quantity: float
    order_type: OrderType
    time_in_force: TimeInForce = TimeInForce.GTC
    client_order_id: int = 0
    use_display_quantity: bool = False
    display_quantity: float | None = None
    limit_price: float | None = None
    stop_price: float | None = None
    peg_price_type: PegPriceType | None = None
    limit_offset: float | None = None
    trailing_amount: float | None = None
    order_id_oco: int | None = Field(default=None, alias="OrderIdOCO")


class CancelReplaceOrderRequest(FoxbitModel):
    oms_id: int = Field(alias="OMSId")
    order_id_to_replace: int
    account_id: int
    instrument_id: int
    side: Side
    quantity: float
    order_type: OrderType
    time_in_force: TimeInForce = TimeInForce.GTC
    client_ord_id: int = 0
    use_display_quantity: bool = False
    display_quantity: float | None = None
    limit_price: float | None = None
    stop_price: float | None = None
    reference_price: float | None = None
    peg_price_type: PegPriceType | None = None
    limit_offset: float | None = None
    trailing_amount: float | None = None
    order_id_oco: int | None = Field(default=None, alias="OrderIdOCO")


class OrderFeeRequest(FoxbitModel):
    oms_id: int = Field(alias="OMSId")
    account_id: int
    instrument_id: int
    product_id: int
    amount: float
    price: float
    order_type: OrderType
    maker_taker: MakerTaker
    side: Side | None = None


class TicketsRequest(FoxbitModel):
    """Filter for ``GetAllDepositTickets`` and ``GetAllWithdrawTickets``.

    ``OMSId`` and ``OperatorId`` are required. ``AmountOperator`` must be set
    whenever ``Amount`` is.
    """

    oms_id: int = Field(alias="OMSId")
    operator_id: int
    account_id: int | None = None
    asset_id: int | None = None
    asset_name: str | None = None
    amount: float | None = None
    amount_operator: AmountOperator | None = None
    status: str | None = None
    notional_product_id: int | None = None
    start_index: int | None = None
    limit: int | None = None

    @model_validator(mode="after")
    def _check_amount_operator(self) -> TicketsRequest:
        if self.amount is not None and self.amount_operator is None:
            raise ValueError("amount_operator is required when amount is set")
        return self
