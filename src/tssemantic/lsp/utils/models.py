"""
Data models shared between the tsserver client and LSP features.

This module defines the request and response shapes exchanged with tsserver
and the cancellation token threaded through every backend call.
"""

import asyncio
from typing import Any, Dict, List, Optional

import attrs


def _validate_non_negative(instance, attribute, value):
    """Validator for non-negative integer values."""
    if value < 0:
        raise ValueError(f"Request {attribute.name} must be non-negative")


@attrs.define(frozen=True)
class ClassificationRequest:
    """
    A substring of a file to classify.

    Attributes:
        file: File name as known to tsserver
        start: UTF-16 offset of the first character
        length: Number of UTF-16 code units to classify
    """

    file: str
    start: int = attrs.field(validator=_validate_non_negative)
    length: int = attrs.field(validator=_validate_non_negative)

    def to_arguments(self) -> Dict[str, Any]:
        """Arguments for the tsserver request."""
        return {"file": self.file, "start": self.start, "length": self.length}


class ResponseType:
    """Constants for the outcome of a tsserver request."""

    RESPONSE = "response"
    CANCELLED = "cancelled"


@attrs.define(frozen=True)
class ServerResponse:
    """
    Outcome of a single tsserver request.

    A request either produced a response message (which may itself report
    failure through ``success``) or was cancelled before one arrived.
    """

    type: str
    command: str
    success: bool = False
    body: Optional[Any] = None
    message: Optional[str] = None

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "ServerResponse":
        """Build a response from a decoded tsserver response message."""
        return cls(
            type=ResponseType.RESPONSE,
            command=message.get("command", ""),
            success=bool(message.get("success", False)),
            body=message.get("body"),
            message=message.get("message"),
        )

    @classmethod
    def cancelled(cls, command: str) -> "ServerResponse":
        return cls(type=ResponseType.CANCELLED, command=command)

    @property
    def is_cancelled(self) -> bool:
        return self.type == ResponseType.CANCELLED

    @property
    def has_body(self) -> bool:
        """True for a successful response that carries a body."""
        return self.type == ResponseType.RESPONSE and self.success and self.body is not None

    def get_spans(self) -> Optional[List[int]]:
        """
        Extract the flat span array of a classification response.

        Returns:
            The spans, or None if the response has no usable body
        """
        if not self.has_body or not isinstance(self.body, dict):
            return None
        spans = self.body.get("spans")
        if not isinstance(spans, list):
            return None
        return spans


class CancellationToken:
    """
    Out-of-band cancellation signal for one provider invocation.

    Checked by the provider between round trips and awaited by the tsserver
    client alongside each pending response.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()
