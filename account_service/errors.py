"""Errors surfaced to API clients.

Each error carries the HTTP status it maps to. The application registers a
single handler for :class:`AccountError` that renders ``{"detail": ...}``.
"""

from __future__ import annotations

from typing import Iterable, List, Union


class AccountError(Exception):
    """Base class for errors returned to the caller."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def detail(self) -> Union[str, List[str]]:
        return self.message


class ValidationError(AccountError):
    """Input is malformed or violates a policy; lists every violation."""

    status_code = 400

    def __init__(self, messages: Union[str, Iterable[str]]) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages))

    @property
    def detail(self) -> List[str]:
        return self.messages


class ConflictError(AccountError):
    """A uniqueness rule would be broken."""

    status_code = 400


class UnauthorizedError(AccountError):
    """Supplied credentials do not match."""

    status_code = 401


class NotFoundError(AccountError):
    """No matching resource or identity."""

    status_code = 404


class NotificationError(AccountError):
    """An email could not be delivered."""

    status_code = 400
