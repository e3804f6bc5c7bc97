"""Tests for fixed-position row parsing."""

import pytest

from foxbit.exceptions import ProtocolError
from foxbit.protocol.models import Product
from foxbit.protocol.parsing import (
    L2_FIELDS,
    parse_l2_entries,
    parse_model,
    parse_models,
    parse_public_trades,
    parse_ticks,
    row_to_dict,
)


class TestRowToDict:
    def test_names_positions(self):
        row = [1, 2, 3, 4, 5.0, 6, 7.0, 8, 9.0, 0]

        data = row_to_dict(row, L2_FIELDS)

        assert data["MDUpdateID"] == 1
        assert data["Price"] == 7.0
        assert data["Side"] == 0

    def test_extra_values_are_ignored(self):
        assert row_to_dict([1, 2, 3], ("A", "B")) == {"A": 1, "B": 2}

    def test_short_row(self):
        with pytest.raises(ProtocolError, match="expected 10"):
            row_to_dict([1, 2, 3], L2_FIELDS)

    def test_non_list_row(self):
        with pytest.raises(ProtocolError, match="array row"):
            row_to_dict({"Price": 1}, L2_FIELDS)


class TestMarketDataRows:
    """Tests for order book, ticker and trade rows."""

    def test_l2_entries(self, sample_l2_rows):
        entries = parse_l2_entries(sample_l2_rows)

        assert len(entries) == 2
        bid, ask = entries
        assert bid.md_update_id == 101
        assert bid.price == 30000.5
        assert bid.quantity == 0.5
        assert bid.side == 0
        assert ask.orders == 3
        assert ask.side == 1

    def test_l2_empty(self):
        assert parse_l2_entries([]) == []

    def test_l2_requires_list(self):
        with pytest.raises(ProtocolError):
            parse_l2_entries({"errorcode": 0})

    def test_ticks(self, sample_tick_rows):
        ticks = parse_ticks(sample_tick_rows)

        assert ticks[0].ticker_date == 1546300800000
        assert ticks[0].high == 31000.0
        assert ticks[0].low == 28500.0
        assert ticks[1].close == 30100.0
        assert ticks[1].instrument_id == 1

    def test_public_trades(self, sample_trade_rows):
        trades = parse_public_trades(sample_trade_rows)

        first, second = trades
        assert first.trade_id == 5001
        assert first.trade_time == 1546300800000
        assert first.block_trade is False
        assert second.block_trade is True
        assert second.order1or2_client_id == 77

    def test_public_trades_requires_list(self):
        with pytest.raises(ProtocolError):
            parse_public_trades("nope")

    def test_bad_value_type(self, sample_tick_rows):
        sample_tick_rows[0][1] = "not-a-number"

        with pytest.raises(ProtocolError, match="Tick"):
            parse_ticks(sample_tick_rows)


class TestParseModel:
    def test_parse_model(self, sample_product):
        product = parse_model(Product, sample_product)

        assert product.product_id == 1
        assert product.product_full_name == "Bitcoin"

    def test_parse_models_requires_list(self, sample_product):
        with pytest.raises(ProtocolError, match="list of Product"):
            parse_models(Product, sample_product)

    def test_parse_model_missing_field(self):
        with pytest.raises(ProtocolError, match="Malformed Product"):
            parse_model(Product, {"OMSId": 1})
