"""Demultiplex inbound frames to pending requests and open subscriptions."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict, deque
from typing import Any, Callable, Mapping, TypeVar

from ..exceptions import FoxbitAPIError
from ..protocol.endpoints import ROUTES, EndpointDescriptor
from ..protocol.frame import MessageFrame
from .subscription import Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Dispatcher:
    """Routing state for one connection.

    Replies to single-response endpoints resolve the oldest pending request of
    that endpoint. Replies and events of streaming endpoints are broadcast to
    every open subscription of the endpoint.
    """

    def __init__(self, routes: Mapping[str, EndpointDescriptor] = ROUTES):
        self._routes = routes
        self._pending: dict[str, deque[asyncio.Future[Any]]] = defaultdict(deque)
        self._streams: dict[str, list[Subscription[Any]]] = defaultdict(list)

    def route(self, name: str) -> EndpointDescriptor | None:
        return self._routes.get(name)

    def expect_reply(self, endpoint: str) -> asyncio.Future[Any]:
        """Register a pending reply; call before the request frame is sent."""
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[endpoint].append(future)
        return future

    def discard(self, endpoint: str, future: asyncio.Future[Any]) -> None:
        pending = self._pending.get(endpoint)
        if pending and future in pending:
            pending.remove(future)

    def open_stream(self, endpoint: str, transform: Callable[[MessageFrame], T]) -> Subscription[T]:
        subscription: Subscription[T] = Subscription(endpoint, transform, on_close=self.remove_stream)
        self._streams[endpoint].append(subscription)
        return subscription

    def remove_stream(self, subscription: Subscription[Any]) -> None:
        streams = self._streams.get(subscription.endpoint)
        if streams and subscription in streams:
            streams.remove(subscription)

    def pending_count(self, endpoint: str | None = None) -> int:
        if endpoint is not None:
            return len(self._pending.get(endpoint, ()))
        return sum(len(p) for p in self._pending.values())

    def stream_count(self, endpoint: str | None = None) -> int:
        if endpoint is not None:
            return len(self._streams.get(endpoint, ()))
        return sum(len(s) for s in self._streams.values())

    def dispatch(self, frame: MessageFrame) -> bool:
        """Deliver a decoded frame. Returns False when the frame was dropped."""
        descriptor = self.route(frame.function_name)
        if descriptor is None:
            logger.warning("Dropping frame for unknown endpoint %s (i=%s)", frame.function_name, frame.sequence)
            return False

        error = FoxbitAPIError.from_payload(frame.payload, endpoint=descriptor.name)

        if not descriptor.is_stream:
            return self._resolve(descriptor.name, frame, error)

        streams = self._streams.get(descriptor.name)
        if not streams:
            logger.warning("Dropping %s: no open subscription for %s", frame.function_name, descriptor.name)
            return False

        for subscription in list(streams):
            if error is not None:
                subscription.fail(error)
                self.remove_stream(subscription)
            else:
                subscription.feed(frame)
        return True

    def _resolve(self, endpoint: str, frame: MessageFrame, error: FoxbitAPIError | None) -> bool:
        pending = self._pending.get(endpoint)
        while pending:
            future = pending.popleft()
            if future.done():
                # Timed out or cancelled by the caller
                continue
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(frame.payload)
            return True

        logger.warning("Dropping reply for %s (i=%s): no pending request", endpoint, frame.sequence)
        return False

    def fail_all(self, exc: BaseException, *, streams_ok: bool = False) -> None:
        """Fail every pending request and end every subscription.

        Args:
            exc: Exception set on pending requests
            streams_ok: End subscriptions cleanly instead of raising exc in them
        """
        for pending in self._pending.values():
            while pending:
                future = pending.popleft()
                if not future.done():
                    future.set_exception(exc)
        self._pending.clear()

        for streams in self._streams.values():
            for subscription in streams:
                if streams_ok:
                    subscription.finish()
                else:
                    subscription.fail(exc)
        self._streams.clear()
