"""FoxBit WebSocket API client."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Callable, TypeVar

from ..logging import FRAME_LOGGER
from ..exceptions import (
    AuthenticationError,
    ConnectionClosedError,
    FoxbitError,
    NotAuthenticatedError,
    RequestTimeoutError,
)
from ..protocol.endpoints import ENDPOINTS, EndpointAccess, get_endpoint
from ..protocol.enums import MessageType
from ..protocol.events import AccountEvent, classify_account_event
from ..protocol.frame import MessageFrame, SequenceCounter
from ..protocol.models import (
    AccountInfo,
    AccountPosition,
    AccountTrade,
    AuthenticateResponse,
    CancelReplaceOrderRequest,
    CancelReplaceOrderResult,
    DepositTicket,
    GenericResponse,
    Instrument,
    L2Entry,
    Level1,
    OrderFee,
    OrderFeeRequest,
    OrderInfo,
    Product,
    PublicTrade,
    SendOrderRequest,
    SendOrderResult,
    Tick,
    TicketsRequest,
    UserConfigEntry,
    UserInfo,
    WithdrawTicket,
)
from ..protocol.parsing import (
    parse_l2_entries,
    parse_model,
    parse_models,
    parse_public_trades,
    parse_ticks,
)
from .connection import NORMAL_CLOSURE, ReconnectPolicy, WebSocketConnection
from .dispatcher import Dispatcher
from .subscription import Subscription

logger = logging.getLogger(__name__)
frame_logger = logging.getLogger(FRAME_LOGGER)

T = TypeVar("T")

DEFAULT_URL = "wss://api.foxbitapi.com.br/WSGateway/"

# Keys masked in logged frames
_SECRET_KEYS = frozenset({"Password", "Code", "SessionToken"})


def _params(**values: Any) -> dict[str, Any]:
    """Build a wire payload, leaving out unset optional values."""
    return {key: value for key, value in values.items() if value is not None}


def _redact(payload: Any) -> Any:
    if not isinstance(payload, dict):
        return payload
    return {key: "***" if key in _SECRET_KEYS and value else value for key, value in payload.items()}


def _format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def _string_list(payload: Any) -> list[str]:
    return [str(item) for item in payload or []]


class FoxbitClient:
    """Client for the FoxBit (AlphaPoint OMS) WebSocket gateway.

    Every request operation sends one frame and waits for its reply. Subscribe
    operations return a :class:`Subscription` that yields the initial reply
    and every later update.

    Example:
        async with FoxbitClient() as client:
            instruments = await client.get_instruments(oms_id=1)
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        *,
        request_timeout: float = 30.0,
        heartbeat: float | None = 30.0,
        reconnect: ReconnectPolicy | None = None,
        resume_session: bool = True,
        connection: WebSocketConnection | None = None,
    ):
        """Initialize the client; no connection is made until connect().

        Args:
            url: Gateway URL
            request_timeout: Seconds to wait for each reply
            heartbeat: WebSocket ping interval in seconds, None to disable
            reconnect: Backoff policy for automatic reconnects
            resume_session: Re-authenticate with the session token after a reconnect
            connection: Transport to use instead of a new WebSocketConnection
        """
        self.url = url
        self.request_timeout = request_timeout
        self.resume_session = resume_session
        self._connection = connection or WebSocketConnection(url, heartbeat=heartbeat, policy=reconnect)
        self._connection.on_message = self._on_message
        self._connection.on_open = self._on_open
        self._connection.on_close = self._on_close
        self._dispatcher = Dispatcher()
        self._sequence = SequenceCounter()
        self._connected = asyncio.Event()
        self._authenticated = False
        self._session_token: str | None = None
        self._user_id: int | None = None
        self._resume_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._connection.is_open

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    @property
    def session_token(self) -> str | None:
        return self._session_token

    @property
    def user_id(self) -> int | None:
        return self._user_id

    async def connect(self) -> bool:
        """Open the WebSocket.

        Raises:
            FoxbitConnectionError: If the gateway cannot be reached
        """
        await self._connection.open()
        return True

    async def disconnect(self) -> None:
        """Close the connection and stop reconnecting; a no-op when already closed."""
        task, self._resume_task = self._resume_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._connection.close()
        self._forget_session()

    async def wait_until_connected(self, timeout: float | None = None) -> None:
        await asyncio.wait_for(self._connected.wait(), timeout)

    async def wait_until_ready(self, timeout: float | None = None) -> bool:
        """Wait for the connection and for any session resumption still in flight.

        Returns:
            True if the session is authenticated afterwards
        """
        await self.wait_until_connected(timeout)
        task = self._resume_task
        if task is not None and not task.done():
            await asyncio.wait_for(asyncio.shield(task), timeout)
        return self._authenticated

    async def __aenter__(self) -> FoxbitClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    def _on_open(self, reconnected: bool) -> None:
        self._connected.set()
        if reconnected and self.resume_session and self._session_token:
            self._resume_task = asyncio.create_task(self._resume(), name="foxbit-resume-session")

    def _on_close(self, code: int | None, reason: str, reconnecting: bool) -> None:
        self._connected.clear()
        self._authenticated = False
        normal = code == NORMAL_CLOSURE or self._connection.closing
        self._dispatcher.fail_all(ConnectionClosedError(code, reason), streams_ok=normal)
        if not reconnecting:
            self._session_token = None

    async def _resume(self) -> None:
        token = self._session_token
        try:
            response = await self.authenticate_2fa("", session_token=token)
        except FoxbitError as exc:
            logger.warning("Could not resume session: %s", exc)
            return
        if response.authenticated:
            logger.info("Session resumed for user %s", self._user_id)
        else:
            logger.warning("Session token rejected: %s", response.errormsg or "not authenticated")
            self._session_token = None

    def _forget_session(self) -> None:
        self._authenticated = False
        self._session_token = None
        self._user_id = None

    def _note_authentication(self, response: AuthenticateResponse) -> None:
        if response.authenticated and not response.requires_2fa:
            self._authenticated = True
            self._session_token = response.session_token or self._session_token
            self._user_id = response.user_id or self._user_id
            logger.info("Authenticated as user %s", self._user_id)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def _on_message(self, raw: str) -> None:
        try:
            frame = MessageFrame.decode(raw)
        except FoxbitError as exc:
            logger.warning("Dropping undecodable frame: %s", exc)
            return
        frame_logger.debug("<- %s i=%s m=%s %s", frame.function_name, frame.sequence, frame.message_type.name, _redact(frame.payload))
        self._dispatcher.dispatch(frame)

    async def _send_frame(self, message_type: MessageType, endpoint: str, payload: dict[str, Any]) -> MessageFrame:
        frame = self._sequence.stamp(MessageFrame(message_type, endpoint, payload))
        frame_logger.debug("-> %s i=%s m=%s %s", endpoint, frame.sequence, message_type.name, _redact(payload))
        await self._connection.send(frame.encode())
        return frame

    def _check_access(self, endpoint: str) -> None:
        descriptor = get_endpoint(endpoint, ENDPOINTS)
        if descriptor.access is EndpointAccess.PRIVATE and not self._authenticated:
            raise NotAuthenticatedError(endpoint)

    async def _request(self, endpoint: str, payload: dict[str, Any], parse: Callable[[Any], T]) -> T:
        self._check_access(endpoint)
        future = self._dispatcher.expect_reply(endpoint)
        try:
            await self._send_frame(MessageType.REQUEST, endpoint, payload)
            reply = await asyncio.wait_for(future, self.request_timeout)
        except asyncio.TimeoutError:
            raise RequestTimeoutError(endpoint, self.request_timeout) from None
        finally:
            self._dispatcher.discard(endpoint, future)
        return parse(reply)

    async def _subscribe(
        self,
        endpoint: str,
        payload: dict[str, Any],
        transform: Callable[[MessageFrame], T],
    ) -> Subscription[T]:
        self._check_access(endpoint)
        subscription = self._dispatcher.open_stream(endpoint, transform)
        try:
            await self._send_frame(MessageType.REQUEST, endpoint, payload)
        except BaseException:
            subscription.close()
            raise
        return subscription

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def web_authenticate_user(self, username: str, password: str) -> AuthenticateResponse:
        response = await self._request(
            "WebAuthenticateUser",
            {"Username": username, "Password": password},
            lambda p: parse_model(AuthenticateResponse, p),
        )
        self._note_authentication(response)
        return response

    async def authenticate_2fa(self, code: str, session_token: str | None = None) -> AuthenticateResponse:
        """Complete two-factor login, or resume a session when a token is given."""
        payload = {"SessionToken": session_token} if session_token else {"Code": code}
        response = await self._request(
            "Authenticate2FA",
            payload,
            lambda p: parse_model(AuthenticateResponse, p),
        )
        self._note_authentication(response)
        return response

    async def login(self, username: str, password: str, two_fa_code: str | None = None) -> AuthenticateResponse:
        """Authenticate, sending the 2FA code when the OMS asks for one.

        Raises:
            AuthenticationError: If the OMS refuses the credentials or a required code is missing
        """
        response = await self.web_authenticate_user(username, password)
        if not response.authenticated:
            raise AuthenticationError(response.errormsg or f"Authentication refused for {username}")
        if response.requires_2fa:
            if not two_fa_code:
                raise AuthenticationError(f"{username} requires a two-factor code ({response.auth_type or 'unknown'})")
            response = await self.authenticate_2fa(two_fa_code)
            if not response.authenticated:
                raise AuthenticationError(response.errormsg or "Two-factor code refused")
        return response

    async def log_out(self) -> bool:
        """End the session and close the connection."""
        result = await self._request("LogOut", {}, lambda p: p.get("result", False) if isinstance(p, dict) else bool(p))
        self._forget_session()
        await self.disconnect()
        return result

    async def reset_password(self, username: str) -> GenericResponse:
        return await self._request("ResetPassword", {"UserName": username}, lambda p: parse_model(GenericResponse, p))

    # ------------------------------------------------------------------
    # Products and instruments
    # ------------------------------------------------------------------

    async def get_product(self, oms_id: int, product_id: int) -> Product:
        return await self._request(
            "GetProduct",
            {"OMSId": oms_id, "ProductId": product_id},
            lambda p: parse_model(Product, p),
        )

    async def get_products(self, oms_id: int) -> list[Product]:
        return await self._request("GetProducts", {"OMSId": oms_id}, lambda p: parse_models(Product, p))

    async def get_instrument(self, oms_id: int, instrument_id: int) -> Instrument:
        return await self._request(
            "GetInstrument",
            {"OMSId": oms_id, "InstrumentId": instrument_id},
            lambda p: parse_model(Instrument, p),
        )

    async def get_instruments(self, oms_id: int) -> list[Instrument]:
        return await self._request("GetInstruments", {"OMSId": oms_id}, lambda p: parse_models(Instrument, p))

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def get_l2_snapshot(self, oms_id: int, instrument_id: int, depth: int = 100) -> list[L2Entry]:
        return await self._request(
            "GetL2Snapshot",
            {"OMSId": oms_id, "InstrumentId": instrument_id, "Depth": depth},
            parse_l2_entries,
        )

    async def get_ticker_history(
        self,
        oms_id: int,
        instrument_id: int,
        from_date: date,
        to_date: date | None = None,
        interval: int = 60,
    ) -> list[Tick]:
        """Fetch candles between two dates.

        Args:
            oms_id: OMS id
            instrument_id: Instrument id
            from_date: First day, inclusive
            to_date: Last day, defaults to today
            interval: Candle size in seconds
        """
        to_date = to_date or date.today()
        return await self._request(
            "GetTickerHistory",
            {
                "OMSId": oms_id,
                "InstrumentId": instrument_id,
                "FromDate": _format_date(from_date),
                "ToDate": _format_date(to_date),
                "Interval": interval,
            },
            parse_ticks,
        )

    @staticmethod
    def _instrument_key(oms_id: int, instrument_id_or_symbol: int | str) -> dict[str, Any]:
        if isinstance(instrument_id_or_symbol, str):
            return {"OMSId": oms_id, "Symbol": instrument_id_or_symbol}
        return {"OMSId": oms_id, "InstrumentId": instrument_id_or_symbol}

    async def subscribe_level1(self, oms_id: int, instrument_id_or_symbol: int | str) -> Subscription[Level1]:
        return await self._subscribe(
            "SubscribeLevel1",
            self._instrument_key(oms_id, instrument_id_or_symbol),
            lambda frame: parse_model(Level1, frame.payload),
        )

    async def subscribe_level2(
        self,
        oms_id: int,
        instrument_id_or_symbol: int | str,
        depth: int = 300,
    ) -> Subscription[list[L2Entry]]:
        payload = self._instrument_key(oms_id, instrument_id_or_symbol)
        payload["Depth"] = depth
        return await self._subscribe("SubscribeLevel2", payload, lambda frame: parse_l2_entries(frame.payload))

    async def subscribe_ticker(
        self,
        oms_id: int,
        instrument_id: int,
        interval: int = 60,
        include_last_count: int = 100,
    ) -> Subscription[list[Tick]]:
        return await self._subscribe(
            "SubscribeTicker",
            {
                "OMSId": oms_id,
                "InstrumentId": instrument_id,
                "Interval": interval,
                "IncludeLastCount": include_last_count,
            },
            lambda frame: parse_ticks(frame.payload),
        )

    async def subscribe_trades(
        self,
        oms_id: int,
        instrument_id: int,
        include_last_count: int = 100,
    ) -> Subscription[list[PublicTrade]]:
        return await self._subscribe(
            "SubscribeTrades",
            {"OMSId": oms_id, "InstrumentId": instrument_id, "IncludeLastCount": include_last_count},
            lambda frame: parse_public_trades(frame.payload),
        )

    async def _unsubscribe(self, endpoint: str, oms_id: int, instrument_id: int) -> GenericResponse:
        return await self._request(
            endpoint,
            {"OMSId": oms_id, "InstrumentId": instrument_id},
            lambda p: parse_model(GenericResponse, p),
        )

    async def unsubscribe_level1(self, oms_id: int, instrument_id: int) -> GenericResponse:
        return await self._unsubscribe("UnsubscribeLevel1", oms_id, instrument_id)

    async def unsubscribe_level2(self, oms_id: int, instrument_id: int) -> GenericResponse:
        return await self._unsubscribe("UnsubscribeLevel2", oms_id, instrument_id)

    async def unsubscribe_ticker(self, oms_id: int, instrument_id: int) -> GenericResponse:
        return await self._unsubscribe("UnsubscribeTicker", oms_id, instrument_id)

    async def unsubscribe_trades(self, oms_id: int, instrument_id: int) -> GenericResponse:
        return await self._unsubscribe("UnsubscribeTrades", oms_id, instrument_id)

    # ------------------------------------------------------------------
    # User
    # ------------------------------------------------------------------

    async def get_available_permission_list(self) -> list[str]:
        return await self._request("GetAvailablePermissionList", {}, _string_list)

    async def get_user_config(self) -> list[UserConfigEntry]:
        return await self._request("GetUserConfig", {}, lambda p: parse_models(UserConfigEntry, p))

    async def get_user_info(self) -> UserInfo:
        return await self._request("GetUserInfo", {}, lambda p: parse_model(UserInfo, p))

    async def get_user_permissions(self, user_id: int) -> list[str]:
        return await self._request("GetUserPermissions", {"UserId": user_id}, _string_list)

    async def remove_user_config(self, user_id: int, user_name: str, key: str) -> GenericResponse:
        return await self._request(
            "RemoveUserConfig",
            {"UserId": user_id, "UserName": user_name, "Key": key},
            lambda p: parse_model(GenericResponse, p),
        )

    async def set_user_config(
        self,
        user_id: int,
        user_name: str,
        config: list[UserConfigEntry] | list[dict[str, str]],
    ) -> GenericResponse:
        entries = [e.to_payload() if isinstance(e, UserConfigEntry) else e for e in config]
        return await self._request(
            "SetUserConfig",
            {"UserId": user_id, "UserName": user_name, "Config": entries},
            lambda p: parse_model(GenericResponse, p),
        )

    async def set_user_info(
        self,
        user_id: int,
        user_name: str,
        password: str,
        email: str,
        email_verified: bool,
        account_id: int,
        use_2fa: bool,
    ) -> UserInfo:
        return await self._request(
            "SetUserInfo",
            {
                "UserId": user_id,
                "UserName": user_name,
                "Password": password,
                "Email": email,
                "EmailVerified": email_verified,
                "AccountId": account_id,
                "Use2FA": use_2fa,
            },
            lambda p: parse_model(UserInfo, p),
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def cancel_all_orders(
        self,
        oms_id: int,
        account_id: int | None = None,
        instrument_id: int | None = None,
    ) -> GenericResponse:
        return await self._request(
            "CancelAllOrders",
            _params(InstrumentId=instrument_id, AccountId=account_id, OMSId=oms_id),
            lambda p: parse_model(GenericResponse, p),
        )

    async def cancel_order(
        self,
        oms_id: int,
        account_id: int | None = None,
        order_id: int | None = None,
        client_order_id: int | None = None,
    ) -> GenericResponse:
        """Cancel one order by OMS order id or by client order id."""
        return await self._request(
            "CancelOrder",
            _params(OMSId=oms_id, AccountId=account_id, OrderId=order_id, ClOrderId=client_order_id),
            lambda p: parse_model(GenericResponse, p),
        )

    async def cancel_quote(
        self,
        oms_id: int,
        bid_quote_id: int,
        ask_quote_id: int,
        account_id: int | None = None,
        instrument_id: int | None = None,
    ) -> GenericResponse:
        return await self._request(
            "CancelQuote",
            _params(
                OMSId=oms_id,
                BidQuoteId=bid_quote_id,
                AskQuoteId=ask_quote_id,
                AccountId=account_id,
                InstrumentId=instrument_id,
            ),
            lambda p: parse_model(GenericResponse, p),
        )

    async def cancel_replace_order(self, request: CancelReplaceOrderRequest) -> CancelReplaceOrderResult:
        return await self._request(
            "CancelReplaceOrder",
            request.to_payload(),
            lambda p: parse_model(CancelReplaceOrderResult, p),
        )

    async def send_order(self, request: SendOrderRequest) -> SendOrderResult:
        return await self._request("SendOrder", request.to_payload(), lambda p: parse_model(SendOrderResult, p))

    async def get_order_fee(self, request: OrderFeeRequest) -> OrderFee:
        return await self._request("GetOrderFee", request.to_payload(), lambda p: parse_model(OrderFee, p))

    async def get_open_orders(self, account_id: int, oms_id: int) -> list[OrderInfo]:
        return await self._request(
            "GetOpenOrders",
            {"OMSId": oms_id, "AccountId": account_id},
            lambda p: parse_models(OrderInfo, p),
        )

    async def get_order_history(self, account_id: int, oms_id: int) -> list[OrderInfo]:
        return await self._request(
            "GetOrderHistory",
            {"OMSId": oms_id, "AccountId": account_id},
            lambda p: parse_models(OrderInfo, p),
        )

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def get_account_info(self, oms_id: int, account_id: int) -> AccountInfo:
        return await self._request(
            "GetAccountInfo",
            {"OMSId": oms_id, "AccountId": account_id},
            lambda p: parse_model(AccountInfo, p),
        )

    async def get_account_positions(self, account_id: int, oms_id: int) -> list[AccountPosition]:
        return await self._request(
            "GetAccountPositions",
            {"OMSId": oms_id, "AccountId": account_id},
            lambda p: parse_models(AccountPosition, p),
        )

    async def get_account_trades(self, account_id: int, oms_id: int, start_index: int, count: int) -> list[AccountTrade]:
        return await self._request(
            "GetAccountTrades",
            {"OMSId": oms_id, "AccountId": account_id, "StartIndex": start_index, "Count": count},
            lambda p: parse_models(AccountTrade, p),
        )

    async def get_account_transactions(self, account_id: int, oms_id: int, depth: int) -> list[AccountTrade]:
        return await self._request(
            "GetAccountTransactions",
            {"OMSId": oms_id, "AccountId": account_id, "Depth": depth},
            lambda p: parse_models(AccountTrade, p),
        )

    async def get_all_deposit_tickets(self, request: TicketsRequest) -> list[DepositTicket]:
        return await self._request(
            "GetAllDepositTickets",
            request.to_payload(),
            lambda p: parse_models(DepositTicket, p),
        )

    async def get_all_withdraw_tickets(self, request: TicketsRequest) -> list[WithdrawTicket]:
        return await self._request(
            "GetAllWithdrawTickets",
            request.to_payload(),
            lambda p: parse_models(WithdrawTicket, p),
        )

    async def get_deposit_ticket(self, oms_id: int, operator_id: int, request_code: str, account_id: int) -> DepositTicket:
        return await self._request(
            "GetDepositTicket",
            {"OMSId": oms_id, "OperatorId": operator_id, "RequestCode": request_code, "AccountId": account_id},
            lambda p: parse_model(DepositTicket, p),
        )

    async def get_withdraw_ticket(
        self,
        oms_id: int,
        operator_id: int,
        request_code: str,
        account_id: int,
    ) -> WithdrawTicket:
        return await self._request(
            "GetWithdrawTicket",
            {"OMSId": oms_id, "OperatorId": operator_id, "RequestCode": request_code, "AccountId": account_id},
            lambda p: parse_model(WithdrawTicket, p),
        )

    async def subscribe_account_events(self, account_id: int, oms_id: int) -> Subscription[AccountEvent]:
        """Stream the subscription acknowledgement and every account event."""
        return await self._subscribe(
            "SubscribeAccountEvents",
            {"AccountId": account_id, "OMSId": oms_id},
            lambda frame: classify_account_event(frame.payload, frame.function_name),
        )
