"""Message frame envelope and per-category sequence numbering."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ProtocolError
from .enums import MessageType

# Requests and (un)subscriptions advance their counter by two; replies and
# events by one.
_EVEN_STEP_TYPES = frozenset({MessageType.REQUEST, MessageType.SUBSCRIBE, MessageType.UNSUBSCRIBE})


@dataclass(slots=True)
class MessageFrame:
    """One WebSocket frame: ``{"m": type, "i": sequence, "n": name, "o": payload}``."""

    message_type: MessageType
    function_name: str
    payload: Any = field(default_factory=dict)
    sequence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "m": int(self.message_type),
            "i": self.sequence,
            "n": self.function_name,
            "o": json.dumps(self.payload),
        }

    def encode(self) -> str:
        """Serialize the frame; the payload is JSON-encoded a second time inside ``o``."""
        return json.dumps(self.to_dict())

    @classmethod
    def decode(cls, raw: str | bytes) -> MessageFrame:
        """Parse an inbound frame, decoding the nested ``o`` payload.

        Raises:
            ProtocolError: If the frame is not valid JSON or lacks the envelope keys
        """
        try:
            envelope = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise ProtocolError(f"Frame is not valid JSON: {exc}") from exc

        if not isinstance(envelope, dict) or "n" not in envelope:
            raise ProtocolError(f"Frame is missing the envelope keys: {envelope!r}")

        try:
            message_type = MessageType(envelope.get("m", MessageType.REPLY))
        except ValueError as exc:
            raise ProtocolError(f"Unknown message type: {envelope.get('m')!r}") from exc

        payload = envelope.get("o")
        if isinstance(payload, str) and payload:
            try:
                payload = json.loads(payload)
            except ValueError as exc:
                raise ProtocolError(f"Payload of {envelope['n']} is not valid JSON: {exc}") from exc

        return cls(
            message_type=message_type,
            function_name=envelope["n"],
            payload=payload,
            sequence=envelope.get("i", 0),
        )


class SequenceCounter:
    """Keeps one running sequence number per message type."""

    def __init__(self) -> None:
        self._counters: dict[MessageType, int] = {message_type: 0 for message_type in MessageType}

    def next(self, message_type: MessageType) -> int:
        step = 2 if message_type in _EVEN_STEP_TYPES else 1
        self._counters[message_type] += step
        return self._counters[message_type]

    def current(self, message_type: MessageType) -> int:
        return self._counters[message_type]

    def stamp(self, frame: MessageFrame) -> MessageFrame:
        """Assign the next sequence number of the frame's category to the frame."""
        frame.sequence = self.next(frame.message_type)
        return frame
