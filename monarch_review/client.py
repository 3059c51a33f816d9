"""Thin client for the Monarch Money API.

Two endpoints are used: ``auth/login/`` (JSON POST returning a session token)
and ``graphql`` (JSON POST of ``{operationName, query, variables}`` with an
``Authorization: Token <token>`` header). Every typed operation below goes
through :meth:`MonarchClient.graphql`.

There are no retries. Non-2xx responses raise :class:`TransportError`; a 2xx
body carrying GraphQL ``errors`` raises :class:`GraphQLError`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from . import queries
from .config import DEFAULT_BASE_URL, Settings
from .errors import AuthError, GraphQLError, NotAuthenticatedError, TransportError
from .logging_setup import get_logger
from .models import (
    BulkTransactionUpdates,
    BulkUpdateResult,
    Category,
    Merchant,
    SearchFilters,
    SearchOrder,
    Tag,
    Transaction,
    TransactionUpdates,
)
from .token_cache import load_token, save_token

_logger = get_logger("monarch_review.client")

MERCHANT_SEARCH_LIMIT = 8
DEFAULT_SEARCH_LIMIT = 1000


def _payload_error_messages(errors: Any) -> list[str]:
    """Flatten ``PayloadError`` / GraphQL error objects into readable strings."""

    if not errors:
        return []
    if isinstance(errors, Mapping):
        errors = [errors]
    out: list[str] = []
    for err in errors:
        if not isinstance(err, Mapping):
            out.append(str(err))
            continue
        msg = err.get("message")
        if msg:
            out.append(str(msg))
        for fe in err.get("fieldErrors") or []:
            field = fe.get("field")
            for m in fe.get("messages") or []:
                out.append(f"{field}: {m}" if field else str(m))
    return out


class MonarchClient:
    """Authenticated request/response operations against one Monarch account."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        token_cache_path: Path | None = None,
        token: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token_cache_path = token_cache_path
        self.token = token
        # Whether the current token came from the on-disk cache.
        self.token_from_cache = False

    @classmethod
    def from_settings(cls, settings: Settings) -> MonarchClient:
        return cls(base_url=settings.base_url, token_cache_path=settings.token_cache_path)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _fetch(
        self,
        path: str,
        body: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        data = json.dumps(body).encode("utf-8")
        req = Request(f"{self.base_url}/{path}", data=data, method="POST")
        for k, v in (headers or {}).items():
            req.add_header(k, v)
        req.add_header("Content-Type", "application/json")

        try:
            with urlopen(req) as resp:
                raw = resp.read()
        except HTTPError as e:
            try:
                err_body = e.read().decode("utf-8", errors="replace")
            except Exception:  # noqa: BLE001 - body is best-effort context
                err_body = ""
            raise TransportError(e.code, str(e.reason), err_body) from e
        except URLError as e:
            raise TransportError(0, str(e.reason), "") from e

        try:
            return json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as e:
            snippet = raw[:500].decode("utf-8", errors="replace")
            raise TransportError(200, "invalid JSON body", snippet) from e

    def graphql(
        self, operation_name: str, query: str, variables: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Submit one named GraphQL operation and return its ``data`` object."""

        if not self.token:
            raise NotAuthenticatedError("graphql called before login")
        _logger.debug(
            "Running GraphQL operation %s with arguments %s",
            operation_name,
            json.dumps(variables),
        )
        res = self._fetch(
            queries.GRAPHQL_PATH,
            {"operationName": operation_name, "variables": dict(variables), "query": query},
            headers={"Authorization": f"Token {self.token}"},
        )
        if not isinstance(res, Mapping):
            raise GraphQLError(operation_name, ["response is not a JSON object"])
        if res.get("errors"):
            raise GraphQLError(operation_name, _payload_error_messages(res["errors"]))
        data = res.get("data")
        if not isinstance(data, Mapping):
            raise GraphQLError(operation_name, ["response has no data"])
        return dict(data)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self, username: str | None = None, password: str | None = None) -> None:
        """Load a cached token or log in and cache the new one.

        Raises :class:`AuthError` when there is no cached token and the
        credentials are missing or rejected.
        """

        if self.token_cache_path is not None:
            _logger.debug("Loading token cache %s", self.token_cache_path)
            cached = load_token(self.token_cache_path)
            if cached:
                self.token = cached
                self.token_from_cache = True
                return

        if not username or not password:
            raise AuthError(
                "No cached token found and MONARCH_USERNAME/MONARCH_PASSWORD are not set."
            )

        _logger.info("No cached token found. Logging in.")
        try:
            res = self._fetch(
                queries.LOGIN_PATH,
                {
                    "username": username,
                    "password": password,
                    "trusted_device": True,
                    "supports_mfa": True,
                },
            )
        except TransportError as e:
            raise AuthError(f"Login failed: {e}") from e

        token = res.get("token") if isinstance(res, Mapping) else None
        if not isinstance(token, str) or not token:
            raise AuthError("Login response did not include a token")

        if self.token_cache_path is not None:
            save_token(self.token_cache_path, token)
        self.token = token
        self.token_from_cache = False

    # ------------------------------------------------------------------
    # Typed operations
    # ------------------------------------------------------------------

    def get_transaction(self, transaction_id: str) -> Transaction:
        data = self.graphql(
            queries.GET_TRANSACTION_OP,
            queries.GET_TRANSACTION,
            {"id": transaction_id, "redirectPosted": True},
        )
        raw = data.get("getTransaction")
        if raw is None:
            raise GraphQLError(
                queries.GET_TRANSACTION_OP, [f"transaction {transaction_id} not found"]
            )
        return Transaction.model_validate(raw)

    def search_transactions(
        self,
        filters: SearchFilters | None = None,
        order: SearchOrder = SearchOrder.REVERSE_CHRONOLOGICAL,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[Transaction]:
        filters = filters or SearchFilters()
        data = self.graphql(
            queries.SEARCH_TRANSACTIONS_OP,
            queries.SEARCH_TRANSACTIONS,
            {"orderBy": str(order), "limit": limit, "filters": filters.to_variables()},
        )
        results = data["allTransactions"]["results"]
        return [Transaction.model_validate(r) for r in results]

    def get_categories(self) -> list[Category]:
        data = self.graphql(queries.GET_CATEGORIES_OP, queries.GET_CATEGORIES, {})
        return [Category.model_validate(c) for c in data["categories"]]

    def get_tags(self) -> list[Tag]:
        data = self.graphql(
            queries.GET_TAGS_OP, queries.GET_TAGS, {"includeTransactionCount": False}
        )
        return [Tag.model_validate(t) for t in data["householdTransactionTags"]]

    def update_transaction(
        self, transaction: Transaction, updates: TransactionUpdates
    ) -> Transaction:
        """Send ``updates`` (only the set fields) and return the refreshed copy."""

        data = self.graphql(
            queries.UPDATE_TRANSACTION_OP,
            queries.UPDATE_TRANSACTION,
            {"input": {"id": transaction.id, **updates.to_variables()}},
        )
        payload = data["updateTransaction"]
        messages = _payload_error_messages(payload.get("errors"))
        if messages or payload.get("transaction") is None:
            raise GraphQLError(queries.UPDATE_TRANSACTION_OP, messages)
        return Transaction.model_validate(payload["transaction"])

    def set_transaction_tags(
        self, transaction: Transaction, tag_ids: Sequence[str]
    ) -> Transaction:
        """Replace the full tag set, then re-fetch for a consistent view."""

        data = self.graphql(
            queries.SET_TRANSACTION_TAGS_OP,
            queries.SET_TRANSACTION_TAGS,
            {"input": {"transactionId": transaction.id, "tagIds": list(tag_ids)}},
        )
        messages = _payload_error_messages((data.get("setTransactionTags") or {}).get("errors"))
        if messages:
            raise GraphQLError(queries.SET_TRANSACTION_TAGS_OP, messages)
        return self.get_transaction(transaction.id)

    def bulk_update_transactions(
        self, transaction_ids: Sequence[str], updates: BulkTransactionUpdates
    ) -> BulkUpdateResult:
        ids = list(transaction_ids)
        data = self.graphql(
            queries.BULK_UPDATE_TRANSACTIONS_OP,
            queries.BULK_UPDATE_TRANSACTIONS,
            {
                "selectedTransactionIds": ids,
                "updates": updates.to_variables(),
                "excludedTransactionIds": [],
                "allSelected": False,
                "expectedAffectedTransactionCount": len(ids),
                "filters": SearchFilters().to_variables(),
            },
        )
        payload = data["bulkUpdateTransactions"] or {}
        result = BulkUpdateResult(
            success=bool(payload.get("success")),
            affected_count=int(payload.get("affectedCount") or 0),
            errors=_payload_error_messages(payload.get("errors")),
        )
        if result.errors:
            raise GraphQLError(queries.BULK_UPDATE_TRANSACTIONS_OP, result.errors)
        return result

    def find_merchants(self, query: str) -> list[Merchant]:
        data = self.graphql(
            queries.FIND_MERCHANTS_OP,
            queries.FIND_MERCHANTS,
            {
                "offset": 0,
                "limit": MERCHANT_SEARCH_LIMIT,
                "orderBy": "TRANSACTION_COUNT",
                "search": query,
            },
        )
        return [Merchant.model_validate(m) for m in data["merchants"]]


__all__ = ["MonarchClient", "MERCHANT_SEARCH_LIMIT", "DEFAULT_SEARCH_LIMIT"]
