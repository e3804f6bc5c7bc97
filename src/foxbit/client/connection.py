"""aiohttp WebSocket transport with automatic reconnect."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

import aiohttp

from ..exceptions import FoxbitConnectionError, NotConnectedError

logger = logging.getLogger(__name__)

# Close code reported when the socket dropped without a close handshake
ABNORMAL_CLOSURE = 1006
NORMAL_CLOSURE = 1000


@dataclass(slots=True)
class ReconnectPolicy:
    """Exponential backoff between reconnect attempts.

    ``max_attempts=0`` retries forever.
    """

    enabled: bool = True
    initial_delay: float = 1.0
    backoff_base: float = 2.0
    max_delay: float = 60.0
    max_attempts: int = 0

    def next_delay(self, attempt: int) -> float:
        """Delay before the given attempt, counting from 1."""
        delay = self.initial_delay * self.backoff_base ** max(attempt - 1, 0)
        return min(delay, self.max_delay)

    def allows(self, attempt: int) -> bool:
        return self.enabled and (self.max_attempts == 0 or attempt <= self.max_attempts)


class WebSocketConnection:
    """One WebSocket to the gateway plus the task that reads from it.

    Callbacks:
        on_message(text): Called for every TEXT frame
        on_open(reconnected): Called after each successful connect
        on_close(code, reason, reconnecting): Called when the socket closes
    """

    def __init__(
        self,
        url: str,
        *,
        heartbeat: float | None = 30.0,
        policy: ReconnectPolicy | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.url = url
        self.heartbeat = heartbeat
        self.policy = policy or ReconnectPolicy()
        self.session = session
        self._owns_session = session is None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader: asyncio.Task[None] | None = None
        self._closing = False

        self.on_message: Callable[[str], None] = lambda text: None
        self.on_open: Callable[[bool], None] = lambda reconnected: None
        self.on_close: Callable[[int | None, str, bool], None] = lambda code, reason, reconnecting: None

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    @property
    def closing(self) -> bool:
        """True once close() was called by the owner of the connection."""
        return self._closing

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def _connect(self) -> aiohttp.ClientWebSocketResponse:
        session = await self._ensure_session()
        try:
            return await session.ws_connect(self.url, heartbeat=self.heartbeat)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as exc:
            raise FoxbitConnectionError(f"Could not connect to {self.url}: {exc}") from exc

    async def open(self) -> None:
        """Connect and start reading.

        Raises:
            FoxbitConnectionError: If the first connect fails
        """
        if self.is_open:
            return
        self._closing = False
        self._ws = await self._connect()
        logger.info("Connected to %s", self.url)
        self.on_open(False)
        self._reader = asyncio.create_task(self._run(), name="foxbit-ws-reader")

    async def send(self, text: str) -> None:
        if not self.is_open:
            raise NotConnectedError()
        try:
            await self._ws.send_str(text)
        except (ConnectionResetError, aiohttp.ClientError) as exc:
            raise NotConnectedError(f"Send failed: {exc}") from exc

    async def close(self) -> None:
        """Close the socket without reconnecting."""
        self._closing = True
        ws = self._ws
        if ws is not None and not ws.closed:
            await ws.close()
        if self._reader is not None and self._reader is not asyncio.current_task():
            if ws is None:
                # Between reconnect attempts there is no socket to close
                self._reader.cancel()
            try:
                await asyncio.wait_for(self._reader, timeout=5)
            except asyncio.TimeoutError:
                self._reader.cancel()
                logger.warning("Reader task did not stop, cancelled")
            except asyncio.CancelledError:
                pass
        self._reader = None
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None

    async def _read(self, ws: aiohttp.ClientWebSocketResponse) -> tuple[int | None, str]:
        reason = ""
        while True:
            message = await ws.receive()
            if message.type == aiohttp.WSMsgType.TEXT:
                try:
                    self.on_message(message.data)
                except Exception:
                    logger.error("Message handler failed", exc_info=True)
            elif message.type == aiohttp.WSMsgType.CLOSE:
                reason = message.extra or ""
                break
            elif message.type in (aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                break
            elif message.type == aiohttp.WSMsgType.ERROR:
                logger.error("WebSocket error: %s", ws.exception())
                break
            else:
                logger.debug("Ignoring %s frame", message.type.name)
        code = ws.close_code if ws.close_code is not None else ABNORMAL_CLOSURE
        return code, reason

    async def _run(self) -> None:
        ws = self._ws
        while ws is not None:
            code, reason = await self._read(ws)
            self._ws = None
            reconnecting = not self._closing and self.policy.enabled
            if self._closing:
                logger.info("Connection closed (code=%s)", code)
            else:
                logger.warning("Connection lost (code=%s, reason=%r)", code, reason)
            self.on_close(code, reason, reconnecting)
            if not reconnecting:
                return
            ws = await self._reconnect()
            if ws is None and not self._closing:
                self.on_close(code, "reconnect attempts exhausted", False)

    async def _reconnect(self) -> aiohttp.ClientWebSocketResponse | None:
        attempt = 1
        while not self._closing and self.policy.allows(attempt):
            delay = self.policy.next_delay(attempt)
            logger.warning("Reconnecting to %s in %.1fs (attempt %d)", self.url, delay, attempt)
            await asyncio.sleep(delay)
            if self._closing:
                break
            try:
                ws = await self._connect()
            except FoxbitConnectionError as exc:
                logger.warning("Reconnect attempt %d failed: %s", attempt, exc)
                attempt += 1
                continue
            self._ws = ws
            logger.info("Reconnected to %s after %d attempt(s)", self.url, attempt)
            self.on_open(True)
            return ws

        if not self._closing:
            logger.error("Giving up on %s after %d reconnect attempt(s)", self.url, attempt - 1)
        return None
