"""Interactive review of Monarch Money transactions.

Public surface: the API client, the review session and the review loop. The
console script lives in :mod:`monarch_review.cli`.
"""

from __future__ import annotations

from .client import MonarchClient
from .config import Settings
from .errors import (
    AuthError,
    GraphQLError,
    LinksFileError,
    MonarchError,
    NotAuthenticatedError,
    ReviewAborted,
    TransportError,
)
from .models import Category, Merchant, Tag, Transaction
from .review import ReviewContext, run_review
from .session import ReviewSession

__all__ = [
    "AuthError",
    "Category",
    "GraphQLError",
    "LinksFileError",
    "Merchant",
    "MonarchClient",
    "MonarchError",
    "NotAuthenticatedError",
    "ReviewAborted",
    "ReviewContext",
    "ReviewSession",
    "Settings",
    "Tag",
    "Transaction",
    "TransportError",
    "run_review",
]
