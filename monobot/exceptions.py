from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schemas.monobank import Failure


class MonobotError(RuntimeError):
    """Base class for errors raised by the bot."""


class ValidationError(MonobotError):
    """Raised when user input cannot satisfy the current dialogue step."""

    def __init__(self, message_key: str, **params: object) -> None:
        super().__init__(message_key)
        self.message_key = message_key
        self.params = params


class AuthenticationError(MonobotError):
    """Raised when Monobank rejects the chat's token."""

    def __init__(self, failure: "Failure") -> None:
        super().__init__(failure.detail)
        self.failure = failure


class UpstreamFailure(MonobotError):
    """Raised when Monobank cannot be reached or answers with an error."""

    def __init__(self, failure: "Failure") -> None:
        super().__init__(failure.detail)
        self.failure = failure


class TransportFailure(MonobotError):
    """Raised when a message could not be delivered to the chat."""
