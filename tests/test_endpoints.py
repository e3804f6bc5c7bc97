"""Tests for the endpoint table and routing."""

import pytest

from foxbit.exceptions import UnknownEndpointError
from foxbit.protocol.endpoints import (
    ACCOUNT_EVENTS,
    ENDPOINTS,
    ROUTES,
    EndpointAccess,
    EndpointDescriptor,
    ReplyType,
    build_routes,
    get_endpoint,
)


class TestEndpointTable:
    """Tests for endpoint descriptors."""

    @pytest.mark.parametrize(
        "name",
        ["WebAuthenticateUser", "Authenticate2FA", "LogOut", "GetInstruments", "GetL2Snapshot", "SubscribeTrades"],
    )
    def test_public_endpoints(self, name):
        assert ENDPOINTS[name].access is EndpointAccess.PUBLIC

    @pytest.mark.parametrize(
        "name",
        ["SendOrder", "CancelOrder", "GetAccountPositions", "GetUserInfo", "SubscribeAccountEvents"],
    )
    def test_private_endpoints(self, name):
        assert ENDPOINTS[name].access is EndpointAccess.PRIVATE

    def test_streaming_endpoints(self):
        streams = {name for name, d in ENDPOINTS.items() if d.is_stream}

        assert streams == {
            "SubscribeLevel1",
            "SubscribeLevel2",
            "SubscribeTicker",
            "SubscribeTrades",
            "SubscribeAccountEvents",
        }

    def test_unsubscribe_is_single_response(self):
        assert ENDPOINTS["UnsubscribeLevel2"].reply_type is ReplyType.RESPONSE


class TestRouting:
    """Tests for name-to-endpoint routing."""

    @pytest.mark.parametrize(
        "event, owner",
        [
            ("Level1UpdateEvent", "SubscribeLevel1"),
            ("Level2UpdateEvent", "SubscribeLevel2"),
            ("TickerDataUpdateEvent", "SubscribeTicker"),
            ("TradeDataUpdateEvent", "SubscribeTrades"),
        ],
    )
    def test_market_events_route_to_subscription(self, event, owner):
        assert ROUTES[event].name == owner

    def test_account_events_route_to_account_subscription(self):
        for event in ACCOUNT_EVENTS:
            assert ROUTES[event].name == "SubscribeAccountEvents"

    def test_endpoint_routes_to_itself(self):
        assert ROUTES["GetProducts"] is ENDPOINTS["GetProducts"]

    def test_get_endpoint_unknown(self):
        with pytest.raises(UnknownEndpointError) as excinfo:
            get_endpoint("GetNothing")

        assert excinfo.value.name == "GetNothing"
        assert str(excinfo.value) == "Unknown endpoint: GetNothing"
        assert isinstance(excinfo.value, KeyError)

    def test_build_routes_rejects_conflicts(self):
        first = EndpointDescriptor("SubscribeA", reply_type=ReplyType.RESPONSE_AND_EVENT, events=("SharedEvent",))
        second = EndpointDescriptor("SubscribeB", reply_type=ReplyType.RESPONSE_AND_EVENT, events=("SharedEvent",))

        with pytest.raises(ValueError, match="SharedEvent"):
            build_routes([first, second])

    def test_build_routes_custom_table(self):
        descriptor = EndpointDescriptor("Ping", EndpointAccess.PUBLIC)

        routes = build_routes([descriptor])

        assert routes == {"Ping": descriptor}
        assert get_endpoint("Ping", routes) is descriptor
