"""Translate reply payloads into models.

Market data replies (order book, ticker, public trades) arrive as arrays of
fixed-position rows; each row is zipped with its field names first.
"""

from __future__ import annotations

from typing import Any, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import ProtocolError
from .models import L2Entry, PublicTrade, Tick

M = TypeVar("M", bound=BaseModel)

L2_FIELDS: tuple[str, ...] = (
    "MDUpdateID",
    "Accounts",
    "ActionDateTime",
    "ActionType",
    "LastTradePrice",
    "Orders",
    "Price",
    "ProductPairCode",
    "Quantity",
    "Side",
)

TICK_FIELDS: tuple[str, ...] = (
    "TickerDate",
    "High",
    "Low",
    "Open",
    "Close",
    "Volume",
    "BidPrice",
    "AskPrice",
    "InstrumentId",
)

TRADE_FIELDS: tuple[str, ...] = (
    "TradeId",
    "ProductPairCode",
    "Quantity",
    "Price",
    "Order1",
    "Order2",
    "Tradetime",
    "Direction",
    "TakerSide",
    "BlockTrade",
    "Order1or2ClientId",
)


def row_to_dict(row: Sequence[Any], fields: Sequence[str]) -> dict[str, Any]:
    """Name the positions of a fixed-position row.

    Raises:
        ProtocolError: If the row is not a list or has fewer values than fields
    """
    if not isinstance(row, (list, tuple)):
        raise ProtocolError(f"Expected an array row, got {type(row).__name__}")
    if len(row) < len(fields):
        raise ProtocolError(f"Row has {len(row)} values, expected {len(fields)}: {row!r}")
    return dict(zip(fields, row))


def parse_model(model: type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(f"Malformed {model.__name__}: {exc}") from exc


def parse_models(model: type[M], payload: Any) -> list[M]:
    if not isinstance(payload, list):
        raise ProtocolError(f"Expected a list of {model.__name__}, got {type(payload).__name__}")
    return [parse_model(model, item) for item in payload]


def _parse_rows(model: type[M], payload: Any, fields: Sequence[str]) -> list[M]:
    if not isinstance(payload, list):
        raise ProtocolError(f"Expected rows of {model.__name__}, got {type(payload).__name__}")
    return [parse_model(model, row_to_dict(row, fields)) for row in payload]


def parse_l2_entries(payload: Any) -> list[L2Entry]:
    return _parse_rows(L2Entry, payload, L2_FIELDS)


def parse_ticks(payload: Any) -> list[Tick]:
    return _parse_rows(Tick, payload, TICK_FIELDS)


def parse_public_trades(payload: Any) -> list[PublicTrade]:
    if not isinstance(payload, list):
        raise ProtocolError(f"Expected rows of PublicTrade, got {type(payload).__name__}")
    trades = []
    for row in payload:
        data = row_to_dict(row, TRADE_FIELDS)
        data["BlockTrade"] = bool(data["BlockTrade"])
        trades.append(parse_model(PublicTrade, data))
    return trades
