"""Enumerations used on the AlphaPoint wire protocol."""

from __future__ import annotations

from enum import Enum, IntEnum


class MessageType(IntEnum):
    """Frame category carried in the ``m`` field."""

    REQUEST = 0
    REPLY = 1
    SUBSCRIBE = 2
    EVENT = 3
    UNSUBSCRIBE = 4
    ERROR = 5


class InstrumentType(IntEnum):
    UNKNOWN = 0
    STANDARD = 1


class SessionStatus(IntEnum):
    UNKNOWN = 0
    RUNNING = 1
    PAUSED = 2
    STOPPED = 3
    STARTING = 4


class MarketStatus(str, Enum):
    RUNNING = "Running"
    PAUSED = "Paused"
    STOPPED = "Stopped"
    STARTING = "Starting"


class MarketStateAction(str, Enum):
    PAUSE = "Pause"
    RESUME = "Resume"
    HALT = "Halt"
    REOPEN = "ReOpen"


class ProductType(IntEnum):
    UNKNOWN = 0
    NATIONAL_CURRENCY = 1
    CRYPTO_CURRENCY = 2
    CONTRACT = 3


class Side(IntEnum):
    """Order side as sent in requests and numeric replies."""

    BUY = 0
    SELL = 1
    SHORT = 2
    UNKNOWN = 3


class TradeSide(str, Enum):
    """Order side as spelled out in trade reports."""

    BUY = "Buy"
    SELL = "Sell"
    SHORT = "Short"
    UNKNOWN = "Unknown"


class ActionType(IntEnum):
    """Order book change carried by an L2 entry."""

    NEW = 0
    UPDATE = 1
    DELETE = 2


class MarketPriceDirection(IntEnum):
    NO_CHANGE = 0
    UP_TICK = 1
    DOWN_TICK = 2


class PegPriceType(IntEnum):
    UNKNOWN = 0
    LAST = 1
    BID = 2
    ASK = 3
    MIDPOINT = 4


class TimeInForce(IntEnum):
    UNKNOWN = 0
    GTC = 1
    IOC = 2
    FOK = 3


class OrderType(IntEnum):
    UNKNOWN = 0
    MARKET = 1
    LIMIT = 2
    STOP_MARKET = 3
    STOP_LIMIT = 4
    TRAILING_STOP_MARKET = 5
    TRAILING_STOP_LIMIT = 6
    BLOCK_TRADE = 7


class MakerTaker(str, Enum):
    UNKNOWN = "Unknown"
    MAKER = "Maker"
    TAKER = "Taker"


class OrderState(str, Enum):
    WORKING = "Working"
    REJECTED = "Rejected"
    CANCELED = "Canceled"
    EXPIRED = "Expired"
    FULLY_EXECUTED = "FullyExecuted"


class SendOrderStatus(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class AmountOperator(IntEnum):
    """How ticket amounts are compared when filtering deposit/withdraw tickets."""

    EQUAL = 0
    EQUAL_OR_GREATER = 1
    LESS_THAN = 2
