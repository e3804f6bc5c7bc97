"""Async iterator over the replies and events of one streaming endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, TypeVar

from ..exceptions import ProtocolError
from ..protocol.frame import MessageFrame

logger = logging.getLogger(__name__)

T = TypeVar("T")

_END = object()


class _Failure:
    __slots__ = ("exc",)

    def __init__(self, exc: BaseException):
        self.exc = exc


class Subscription(Generic[T]):
    """Stream of parsed items for a ``Subscribe*`` call.

    The first item is the initial reply; later items are the push events the
    OMS routes to the same endpoint. Iteration ends when the subscription is
    closed or the connection closes normally, and raises when the OMS sends an
    error or the connection drops. Items the transform rejects as malformed
    are logged and skipped.
    """

    def __init__(
        self,
        endpoint: str,
        transform: Callable[[MessageFrame], T],
        on_close: Callable[[Subscription[Any]], None] | None = None,
    ):
        self.endpoint = endpoint
        self._transform = transform
        self._on_close = on_close
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, frame: MessageFrame) -> None:
        if not self._closed:
            self._queue.put_nowait(frame)

    def fail(self, exc: BaseException) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_Failure(exc))

    def finish(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_END)

    def close(self) -> None:
        """Stop receiving items; pending iteration ends after queued items."""
        if self._closed:
            return
        self.finish()
        if self._on_close:
            self._on_close(self)

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        while True:
            item = await self._queue.get()
            if item is _END:
                self._queue.put_nowait(_END)
                raise StopAsyncIteration
            if isinstance(item, _Failure):
                self._queue.put_nowait(item)
                raise item.exc
            try:
                return self._transform(item)
            except ProtocolError as exc:
                logger.warning("Dropping malformed %s item: %s", item.function_name, exc)

    async def next(self, timeout: float | None = None) -> T:
        """Wait for the next item.

        Raises:
            StopAsyncIteration: If the subscription has ended
            asyncio.TimeoutError: If no item arrives within timeout seconds
        """
        return await asyncio.wait_for(self.__anext__(), timeout)

    async def __aenter__(self) -> Subscription[T]:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Subscription {self.endpoint} {state} queued={self._queue.qsize()}>"
