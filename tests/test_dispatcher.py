"""Tests for reply and event demultiplexing."""

import asyncio
import logging

import pytest

from foxbit.client.dispatcher import Dispatcher
from foxbit.exceptions import ConnectionClosedError, FoxbitAPIError
from foxbit.protocol.enums import MessageType
from foxbit.protocol.frame import MessageFrame
from foxbit.protocol.parsing import parse_l2_entries

ERROR_REPLY = {"result": False, "errormsg": "Invalid Request", "errorcode": 100, "detail": "Bad OMSId"}


def reply(name, payload, message_type=MessageType.REPLY):
    return MessageFrame(message_type, name, payload)


def payload_of(frame):
    return frame.payload


class TestPendingReplies:
    """Tests for single-response endpoints."""

    @pytest.mark.asyncio
    async def test_reply_resolves_pending_request(self):
        dispatcher = Dispatcher()
        future = dispatcher.expect_reply("GetProducts")

        assert dispatcher.dispatch(reply("GetProducts", [{"ProductId": 1}])) is True

        assert await future == [{"ProductId": 1}]
        assert dispatcher.pending_count("GetProducts") == 0

    @pytest.mark.asyncio
    async def test_concurrent_requests_resolve_in_order(self):
        dispatcher = Dispatcher()
        first = dispatcher.expect_reply("GetProduct")
        second = dispatcher.expect_reply("GetProduct")

        dispatcher.dispatch(reply("GetProduct", {"ProductId": 1}))
        dispatcher.dispatch(reply("GetProduct", {"ProductId": 2}))

        assert (await first)["ProductId"] == 1
        assert (await second)["ProductId"] == 2

    @pytest.mark.asyncio
    async def test_replies_do_not_cross_endpoints(self):
        dispatcher = Dispatcher()
        products = dispatcher.expect_reply("GetProducts")
        instruments = dispatcher.expect_reply("GetInstruments")

        dispatcher.dispatch(reply("GetInstruments", ["instrument"]))

        assert await instruments == ["instrument"]
        assert not products.done()

    @pytest.mark.asyncio
    async def test_error_reply_fails_oldest_request(self):
        dispatcher = Dispatcher()
        first = dispatcher.expect_reply("GetInstrument")
        second = dispatcher.expect_reply("GetInstrument")

        dispatcher.dispatch(reply("GetInstrument", ERROR_REPLY))

        with pytest.raises(FoxbitAPIError) as excinfo:
            await first
        assert str(excinfo.value) == "100 - Invalid Request. Bad OMSId"
        assert excinfo.value.endpoint == "GetInstrument"
        assert not second.done()

    @pytest.mark.asyncio
    async def test_successful_generic_response_is_not_an_error(self):
        dispatcher = Dispatcher()
        future = dispatcher.expect_reply("CancelOrder")

        dispatcher.dispatch(reply("CancelOrder", {"result": True, "errormsg": None, "errorcode": 0, "detail": None}))

        assert (await future)["result"] is True

    @pytest.mark.asyncio
    async def test_discarded_request_is_skipped(self):
        dispatcher = Dispatcher()
        abandoned = dispatcher.expect_reply("GetProducts")
        waiting = dispatcher.expect_reply("GetProducts")
        abandoned.cancel()

        dispatcher.dispatch(reply("GetProducts", []))

        assert await waiting == []

    @pytest.mark.asyncio
    async def test_discard_removes_slot(self):
        dispatcher = Dispatcher()
        future = dispatcher.expect_reply("GetProducts")

        dispatcher.discard("GetProducts", future)

        assert dispatcher.pending_count() == 0

    @pytest.mark.asyncio
    async def test_reply_without_pending_request_is_dropped(self, caplog):
        dispatcher = Dispatcher()

        with caplog.at_level(logging.WARNING):
            assert dispatcher.dispatch(reply("GetProducts", [])) is False

        assert "no pending request" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_endpoint_is_dropped(self, caplog):
        dispatcher = Dispatcher()

        with caplog.at_level(logging.WARNING):
            assert dispatcher.dispatch(reply("SomethingNew", {})) is False

        assert "unknown endpoint SomethingNew" in caplog.text


class TestStreams:
    """Tests for streaming endpoints."""

    @pytest.mark.asyncio
    async def test_reply_and_events_reach_stream(self):
        dispatcher = Dispatcher()
        stream = dispatcher.open_stream("SubscribeLevel1", payload_of)

        dispatcher.dispatch(reply("SubscribeLevel1", {"InstrumentId": 1, "BestBid": 1.0}))
        dispatcher.dispatch(reply("Level1UpdateEvent", {"InstrumentId": 1, "BestBid": 2.0}, MessageType.EVENT))

        assert (await stream.next(1))["BestBid"] == 1.0
        assert (await stream.next(1))["BestBid"] == 2.0

    @pytest.mark.asyncio
    async def test_events_are_broadcast(self):
        dispatcher = Dispatcher()
        first = dispatcher.open_stream("SubscribeTrades", payload_of)
        second = dispatcher.open_stream("SubscribeTrades", payload_of)

        dispatcher.dispatch(reply("TradeDataUpdateEvent", [[1]], MessageType.EVENT))

        assert await first.next(1) == [[1]]
        assert await second.next(1) == [[1]]

    @pytest.mark.asyncio
    async def test_event_without_stream_is_dropped(self, caplog):
        dispatcher = Dispatcher()

        with caplog.at_level(logging.WARNING):
            assert dispatcher.dispatch(reply("Level2UpdateEvent", [], MessageType.EVENT)) is False

        assert "no open subscription" in caplog.text

    @pytest.mark.asyncio
    async def test_error_reply_terminates_streams(self):
        dispatcher = Dispatcher()
        stream = dispatcher.open_stream("SubscribeLevel2", payload_of)

        dispatcher.dispatch(reply("SubscribeLevel2", ERROR_REPLY))

        with pytest.raises(FoxbitAPIError):
            await stream.next(1)
        assert dispatcher.stream_count("SubscribeLevel2") == 0
        # Stays failed
        with pytest.raises(FoxbitAPIError):
            await stream.next(1)

    @pytest.mark.asyncio
    async def test_closed_stream_stops_receiving(self):
        dispatcher = Dispatcher()
        stream = dispatcher.open_stream("SubscribeTicker", payload_of)

        stream.close()
        dispatcher.dispatch(reply("TickerDataUpdateEvent", [[1]], MessageType.EVENT))

        assert dispatcher.stream_count() == 0
        assert [item async for item in stream] == []

    @pytest.mark.asyncio
    async def test_stream_context_manager_closes(self):
        dispatcher = Dispatcher()

        async with dispatcher.open_stream("SubscribeLevel1", payload_of) as stream:
            assert dispatcher.stream_count("SubscribeLevel1") == 1

        assert stream.closed
        assert dispatcher.stream_count("SubscribeLevel1") == 0

    @pytest.mark.asyncio
    async def test_transform_is_applied(self):
        dispatcher = Dispatcher()
        stream = dispatcher.open_stream("SubscribeLevel1", lambda frame: frame.function_name)

        dispatcher.dispatch(reply("Level1UpdateEvent", {}, MessageType.EVENT))

        assert await stream.next(1) == "Level1UpdateEvent"

    @pytest.mark.asyncio
    async def test_malformed_event_is_skipped(self, caplog, sample_l2_rows):
        dispatcher = Dispatcher()
        stream = dispatcher.open_stream("SubscribeLevel2", lambda frame: parse_l2_entries(frame.payload))

        with caplog.at_level(logging.WARNING):
            dispatcher.dispatch(reply("Level2UpdateEvent", [[1, 2]], MessageType.EVENT))
            dispatcher.dispatch(reply("Level2UpdateEvent", sample_l2_rows, MessageType.EVENT))

            entries = await stream.next(1)

        assert [e.md_update_id for e in entries] == [101, 102]
        assert "Dropping malformed Level2UpdateEvent item" in caplog.text

    @pytest.mark.asyncio
    async def test_next_times_out(self):
        dispatcher = Dispatcher()
        stream = dispatcher.open_stream("SubscribeLevel1", payload_of)

        with pytest.raises(asyncio.TimeoutError):
            await stream.next(0.01)


class TestFailAll:
    """Tests for connection loss handling."""

    @pytest.mark.asyncio
    async def test_pending_requests_fail(self):
        dispatcher = Dispatcher()
        future = dispatcher.expect_reply("GetProducts")

        dispatcher.fail_all(ConnectionClosedError(1006))

        with pytest.raises(ConnectionClosedError) as excinfo:
            await future
        assert excinfo.value.code == 1006
        assert dispatcher.pending_count() == 0

    @pytest.mark.asyncio
    async def test_streams_end_cleanly_on_normal_close(self):
        dispatcher = Dispatcher()
        stream = dispatcher.open_stream("SubscribeLevel1", payload_of)
        dispatcher.dispatch(reply("SubscribeLevel1", {"InstrumentId": 1}))

        dispatcher.fail_all(ConnectionClosedError(1000), streams_ok=True)

        items = [item async for item in stream]
        assert items == [{"InstrumentId": 1}]

    @pytest.mark.asyncio
    async def test_streams_fail_on_abnormal_close(self):
        dispatcher = Dispatcher()
        stream = dispatcher.open_stream("SubscribeLevel1", payload_of)

        dispatcher.fail_all(ConnectionClosedError(1006, "gone"))

        with pytest.raises(ConnectionClosedError, match="gone"):
            async for _ in stream:
                pass
        assert dispatcher.stream_count() == 0
