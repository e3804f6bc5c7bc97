"""Pytest configuration and fixtures."""

import asyncio
import json
from typing import Any, Callable

import pytest

from foxbit.client import FoxbitClient
from foxbit.exceptions import NotConnectedError


def make_frame(name: str, payload: Any, sequence: int = 0, message_type: int = 1) -> str:
    """Build a raw inbound frame the way the gateway sends it."""
    return json.dumps({"m": message_type, "i": sequence, "n": name, "o": json.dumps(payload)})


class FakeConnection:
    """In-memory stand-in for WebSocketConnection.

    Outbound frames are recorded in ``sent`` with their payload decoded.
    When ``replies`` holds an entry for the endpoint, the reply is delivered
    on the next loop iteration.
    """

    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.replies: dict[str, Any] = {}
        self.is_open = False
        self.closing = False
        self.opened = 0
        self.on_message: Callable[[str], None] = lambda text: None
        self.on_open: Callable[[bool], None] = lambda reconnected: None
        self.on_close: Callable[[int | None, str, bool], None] = lambda code, reason, reconnecting: None

    async def open(self) -> None:
        self.is_open = True
        self.closing = False
        self.opened += 1
        self.on_open(False)

    async def send(self, text: str) -> None:
        if not self.is_open:
            raise NotConnectedError()
        envelope = json.loads(text)
        envelope["o"] = json.loads(envelope["o"])
        self.sent.append(envelope)

        name = envelope["n"]
        if name in self.replies:
            reply = self.replies[name]
            payload = reply(envelope["o"]) if callable(reply) else reply
            asyncio.get_running_loop().call_soon(self.on_message, make_frame(name, payload, envelope["i"]))

    async def close(self) -> None:
        self.closing = True
        if self.is_open:
            self.is_open = False
            self.on_close(1000, "", False)

    def push(self, name: str, payload: Any, message_type: int = 3) -> None:
        """Deliver an unsolicited frame (an event by default)."""
        self.on_message(make_frame(name, payload, 0, message_type))

    def drop(self, code: int = 1006, reason: str = "", reconnecting: bool = True) -> None:
        """Simulate the socket going away."""
        self.is_open = False
        self.on_close(code, reason, reconnecting)

    def last(self, name: str | None = None) -> dict[str, Any]:
        frames = [f for f in self.sent if name is None or f["n"] == name]
        assert frames, f"no frame sent for {name}"
        return frames[-1]


@pytest.fixture
def fake_connection():
    """Fake transport with no socket behind it."""
    return FakeConnection()


@pytest.fixture
def client(fake_connection):
    """Client wired to the fake transport, already marked connected."""
    fake_connection.is_open = True
    return FoxbitClient(connection=fake_connection, request_timeout=1.0)


@pytest.fixture
def authed_client(client):
    """Client with an authenticated session."""
    client._authenticated = True
    client._session_token = "session-token-123"
    client._user_id = 42
    return client


@pytest.fixture
def sample_instrument():
    return {
        "OMSId": 1,
        "InstrumentId": 1,
        "Symbol": "BTC/BRL",
        "Product1": 1,
        "Product1Symbol": "BTC",
        "Product2": 2,
        "Product2Symbol": "BRL",
        "InstrumentType": "Standard",
        "VenueInstrumentId": 1,
        "VenueId": 1,
        "SortIndex": 0,
        "SessionStatus": "Running",
        "PreviousSessionStatus": "Paused",
        "SessionStatusDateTime": "2019-01-01T00:00:00Z",
        "SelfTradePrevention": True,
        "QuantityIncrement": 0.0001,
    }


@pytest.fixture
def sample_product():
    return {
        "OMSId": 1,
        "ProductId": 1,
        "Product": "BTC",
        "ProductFullName": "Bitcoin",
        "ProductType": "CryptoCurrency",
        "DecimalPlaces": 8,
        "TickSize": 0.00000001,
        "NoFees": False,
    }


@pytest.fixture
def sample_level1():
    return {
        "OMSId": 1,
        "InstrumentId": 1,
        "BestBid": 30000.5,
        "BestOffer": 30010.0,
        "LastTradedPx": 30005.0,
        "LastTradedQty": 0.25,
        "LastTradeTime": 1546300800000,
        "SessionOpen": 29000.0,
        "SessionHigh": 31000.0,
        "SessionLow": 28500.0,
        "SessionClose": 30005.0,
        "Volume": 0.25,
        "CurrentDayVolume": 12.5,
        "CurrentDayNumTrades": 120,
        "CurrentDayPxChange": 1005.0,
        "Rolling24HrVolume": 20.0,
        "Rolling24NumTrades": 200,
        "Rolling24HrPxChange": 3.4,
        "TimeStamp": 1546300800000,
    }


@pytest.fixture
def sample_l2_rows():
    # MDUpdateID, Accounts, ActionDateTime, ActionType, LastTradePrice, Orders, Price, ProductPairCode, Quantity, Side
    return [
        [101, 1, 1546300800000, 0, 30005.0, 1, 30000.5, 1, 0.5, 0],
        [102, 2, 1546300800001, 0, 30005.0, 3, 30010.0, 1, 1.25, 1],
    ]


@pytest.fixture
def sample_tick_rows():
    # TickerDate, High, Low, Open, Close, Volume, BidPrice, AskPrice, InstrumentId
    return [
        [1546300800000, 31000.0, 28500.0, 29000.0, 30005.0, 12.5, 30000.5, 30010.0, 1],
        [1546304400000, 30500.0, 29800.0, 30005.0, 30100.0, 3.0, 30090.0, 30110.0, 1],
    ]


@pytest.fixture
def sample_trade_rows():
    # TradeId, ProductPairCode, Quantity, Price, Order1, Order2, Tradetime, Direction, TakerSide, BlockTrade, Order1or2ClientId
    return [
        [5001, 1, 0.1, 30005.0, 9001, 9002, 1546300800000, 0, 0, 0, 0],
        [5002, 1, 0.2, 30010.0, 9003, 9004, 1546300800500, 1, 1, 1, 77],
    ]


@pytest.fixture
def sample_position():
    return {
        "OMSId": 1,
        "AccountId": 7,
        "ProductSymbol": "BTC",
        "ProductId": 1,
        "Amount": 1.5,
        "Hold": 0.5,
        "PendingDeposits": 0.0,
        "PendingWithdraws": 0.0,
        "TotalDayDeposits": 0.0,
        "TotalDayWithdraws": 0.0,
        "TotalMonthWithdraws": 0.0,
    }


@pytest.fixture
def sample_order():
    return {
        "Side": "Buy",
        "OrderId": 6001,
        "Price": 30000.0,
        "Quantity": 0.1,
        "DisplayQuantity": 0.1,
        "Instrument": 1,
        "Account": 7,
        "OrderType": "Limit",
        "ClientOrderId": 0,
        "OrderState": "Working",
        "ReceiveTime": 1546300800000,
        "OrigQuantity": 0.1,
        "QuantityExecuted": 0.0,
        "AvgPrice": 0.0,
        "ChangeReason": "NewInputAccepted",
        "OMSId": 1,
    }
