"""Typed views of the Monarch API payloads used by the review loop.

The service speaks camelCase; models expose snake_case attributes and accept
either spelling on input (``populate_by_name``). Unknown fields are ignored
since queries select more than the review loop needs. Models are frozen: the
session replaces a transaction wholesale rather than mutating it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Reference entities
# ---------------------------------------------------------------------------


class CategoryGroup(_ApiModel):
    id: str
    name: str | None = None
    type: str | None = None


class Category(_ApiModel):
    """A user category.

    Transaction payloads only carry ``id``/``name``/``icon``/partial ``group``;
    the full category list adds ordering and flags.
    """

    id: str
    name: str
    icon: str = ""
    order: int | None = None
    group: CategoryGroup | None = None
    is_disabled: bool = False
    system_category: str | None = None
    is_system_category: bool = False

    @property
    def qualified_name(self) -> str:
        group_name = self.group.name if self.group and self.group.name else None
        return f"{group_name}: {self.name}" if group_name else self.name


class Tag(_ApiModel):
    id: str
    name: str
    color: str | None = None
    order: int | None = None


class Merchant(_ApiModel):
    id: str
    name: str
    # The API spells this both ways depending on the query.
    transaction_count: int | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "transactionCount", "transactionsCount", "transaction_count"
        ),
    )


class Account(_ApiModel):
    id: str | None = None
    display_name: str = ""


class Transaction(_ApiModel):
    id: str
    amount: float
    pending: bool = False
    date: str
    original_date: str | None = None
    hide_from_reports: bool = False
    needs_review: bool = False
    review_status: str | None = None
    is_recurring: bool = False
    notes: str | None = None
    plaid_name: str = ""
    data_provider_description: str | None = None
    account: Account = Field(default_factory=Account)
    category: Category
    merchant: Merchant
    tags: list[Tag] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request shapes
# ---------------------------------------------------------------------------


class SearchOrder(StrEnum):
    CHRONOLOGICAL = "date"
    REVERSE_CHRONOLOGICAL = "inverse_date"


class SearchFilters(_ApiModel):
    """Filters for ``allTransactions``; defaults mean "no filter"."""

    search: str = ""
    categories: list[str] = Field(default_factory=list)
    accounts: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    needs_review: bool | None = None
    needs_review_unassigned: bool | None = None

    def to_variables(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TransactionUpdates(_ApiModel):
    """Sparse single-transaction update; only set fields are sent."""

    date: str | None = None
    category: str | None = None
    notes: str | None = None
    hide_from_reports: bool | None = None
    reviewed: bool | None = None
    needs_review: bool | None = None
    needs_review_by_user: str | None = None
    name: str | None = None
    tags: list[str] | None = None

    def to_variables(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BulkTransactionUpdates(_ApiModel):
    """Sparse bulk update applied to every selected transaction."""

    category_id: str | None = None
    merchant_name: str | None = None
    date: str | None = None
    notes: str | None = None
    hide: bool | None = None
    tags: list[str] | None = None
    review_status: str | None = None
    goal_id: str | None = None
    is_recurring: bool | None = None

    def to_variables(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BulkUpdateResult(_ApiModel):
    success: bool = False
    affected_count: int = 0
    errors: list[str] = Field(default_factory=list)


__all__ = [
    "Account",
    "BulkTransactionUpdates",
    "BulkUpdateResult",
    "Category",
    "CategoryGroup",
    "Merchant",
    "SearchFilters",
    "SearchOrder",
    "Tag",
    "Transaction",
    "TransactionUpdates",
]
