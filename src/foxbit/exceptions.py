"""Exceptions raised by the FoxBit client."""

from __future__ import annotations

from typing import Any


class FoxbitError(Exception):
    """Base class for foxbit specific errors."""


class FoxbitConnectionError(FoxbitError, ConnectionError):
    """The WebSocket connection could not be opened or was lost."""


class NotConnectedError(FoxbitConnectionError):
    """A frame was sent while no connection is open."""

    def __init__(self, message: str = "WebSocket connection is not open") -> None:
        super().__init__(message)


class ConnectionClosedError(FoxbitConnectionError):
    """The connection closed while a reply or event was still expected."""

    def __init__(self, code: int | None = None, reason: str | None = None) -> None:
        self.code = code
        self.reason = reason or ""
        message = f"WebSocket connection closed (code={code})"
        if self.reason:
            message += f": {self.reason}"
        super().__init__(message)


class ProtocolError(FoxbitError):
    """An inbound frame or payload does not have the expected shape."""


class UnknownEndpointError(FoxbitError, KeyError):
    """The endpoint name is not part of the dispatch table."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown endpoint: {self.name}"


class FoxbitAPIError(FoxbitError):
    """The OMS answered with an error reply.

    Args:
        errorcode: Numeric error code sent by the OMS
        errormsg: Short error message
        detail: Additional detail, often empty
        endpoint: Endpoint name the error was routed to
    """

    def __init__(
        self,
        errorcode: int,
        errormsg: str | None = None,
        detail: str | None = None,
        endpoint: str | None = None,
    ) -> None:
        self.errorcode = errorcode
        self.errormsg = errormsg or ""
        self.detail = detail or ""
        self.endpoint = endpoint
        super().__init__(f"{errorcode} - {self.errormsg}. {self.detail}")

    @classmethod
    def from_payload(cls, payload: Any, endpoint: str | None = None) -> FoxbitAPIError | None:
        """Build an error from a reply payload, or return None if it is not an error reply."""
        if not isinstance(payload, dict):
            return None
        if "errorcode" not in payload or "result" not in payload:
            return None
        if not payload["errorcode"]:
            return None
        return cls(
            payload["errorcode"],
            payload.get("errormsg"),
            payload.get("detail"),
            endpoint=endpoint,
        )


class RequestTimeoutError(FoxbitError, TimeoutError):
    """No reply arrived for a request within the configured timeout."""

    def __init__(self, endpoint: str, timeout: float) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        super().__init__(f"No reply to {endpoint} within {timeout:g}s")


class AuthenticationError(FoxbitError):
    """The OMS refused the supplied credentials."""


class NotAuthenticatedError(FoxbitError):
    """A private endpoint was called before the session was authenticated."""

    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint
        super().__init__(f"{endpoint} requires an authenticated session")
