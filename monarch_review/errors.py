"""Exception types shared across the package.

Handlers in the review loop catch :class:`MonarchError` and report it; only
:class:`AuthError` is fatal (raised during startup). :class:`ReviewAborted`
is not an error: prompts raise it on Ctrl-C/EOF so the loop can shut down.
"""

from __future__ import annotations

from collections.abc import Sequence


class MonarchError(Exception):
    """Base class for failures talking to the service or reading local files."""


class AuthError(MonarchError):
    """Missing or rejected credentials with no usable cached token."""


class NotAuthenticatedError(MonarchError):
    """A data operation was attempted before ``authenticate()``."""


class TransportError(MonarchError):
    """Non-success HTTP response."""

    def __init__(self, status: int, reason: str, body: str) -> None:
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"Request returned HTTP {status}: {reason}\n{body}".rstrip())


class GraphQLError(MonarchError):
    """A 2xx response whose payload reports errors."""

    def __init__(self, operation: str, messages: Sequence[str]) -> None:
        self.operation = operation
        self.messages = tuple(messages)
        joined = "; ".join(self.messages) or "unknown error"
        super().__init__(f"{operation} failed: {joined}")


class LinksFileError(MonarchError):
    """The custom links file exists but cannot be used."""


class ReviewAborted(Exception):
    """The operator interrupted input (Ctrl-C or EOF)."""


__all__ = [
    "MonarchError",
    "AuthError",
    "NotAuthenticatedError",
    "TransportError",
    "GraphQLError",
    "LinksFileError",
    "ReviewAborted",
]
