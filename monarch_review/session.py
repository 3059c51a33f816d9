"""In-memory state for one review pass.

The transaction list has a fixed length for the lifetime of the session; items
are only ever replaced in place. ``cursor`` ranges over ``[0, len]`` and
``cursor == len`` means the pass is finished.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Collection, Iterable, Sequence

from .models import Category, Tag, Transaction


class ReviewSession:
    def __init__(self, transactions: Iterable[Transaction]) -> None:
        self._items: list[Transaction] = list(transactions)
        self.cursor = 0

    def __len__(self) -> int:
        return len(self._items)

    @property
    def transactions(self) -> Sequence[Transaction]:
        return tuple(self._items)

    @property
    def done(self) -> bool:
        return self.cursor >= len(self._items)

    @property
    def current(self) -> Transaction:
        if self.done:
            raise IndexError("review session is finished")
        return self._items[self.cursor]

    def get(self, index: int) -> Transaction:
        return self._items[index]

    def replace(self, index: int, transaction: Transaction) -> None:
        self._items[index] = transaction

    def replace_current(self, transaction: Transaction) -> None:
        self.replace(self.cursor, transaction)

    # Cursor movement: clamped, no wraparound.

    def advance(self) -> None:
        if self.cursor < len(self._items) - 1:
            self.cursor += 1

    def retreat(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def finish(self) -> None:
        self.cursor = len(self._items)

    # Local patches used after bulk updates (no server round trip).

    def patch_category(self, transaction_ids: Collection[str], category: Category) -> int:
        return self._patch(transaction_ids, category=category)

    def patch_tags(self, transaction_ids: Collection[str], tags: Sequence[Tag]) -> int:
        return self._patch(transaction_ids, tags=list(tags))

    def _patch(self, transaction_ids: Collection[str], **fields: object) -> int:
        ids = set(transaction_ids)
        touched = 0
        for i, txn in enumerate(self._items):
            if txn.id in ids:
                self._items[i] = txn.model_copy(update=fields)
                touched += 1
        return touched

    def merchant_counts(self) -> list[tuple[str, int]]:
        """Merchant names with their counts, most frequent first."""

        counts = Counter(t.merchant.name for t in self._items)
        return sorted(counts.items(), key=lambda kv: -kv[1])


__all__ = ["ReviewSession"]
