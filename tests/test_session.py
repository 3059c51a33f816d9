from __future__ import annotations

import pytest

from monarch_review.session import ReviewSession

from tests.helpers.fakes import GROCERIES, TAGS, make_txn


def test_cursor_is_clamped_at_both_ends():
    session = ReviewSession([make_txn("a"), make_txn("b"), make_txn("c")])

    session.retreat()
    assert session.cursor == 0
    for _ in range(5):
        session.advance()
    assert session.cursor == 2
    assert not session.done


def test_finish_ends_the_pass():
    session = ReviewSession([make_txn("a"), make_txn("b")])
    session.finish()

    assert session.done
    assert session.cursor == len(session)
    with pytest.raises(IndexError):
        session.current


def test_empty_session_is_already_done():
    assert ReviewSession([]).done


def test_replace_current_keeps_length_and_position():
    session = ReviewSession([make_txn("a"), make_txn("b")])
    session.advance()
    updated = make_txn("b", notes="checked")

    session.replace_current(updated)

    assert len(session) == 2
    assert session.cursor == 1
    assert session.current is updated
    assert session.get(0).id == "a"


def test_patches_touch_only_matching_ids():
    session = ReviewSession([make_txn("a"), make_txn("b"), make_txn("c")])

    assert session.patch_category({"a", "c", "zzz"}, GROCERIES) == 2
    assert session.patch_tags(["b"], TAGS) == 1

    assert [t.category.name for t in session.transactions] == [
        "Groceries",
        "Uncategorized",
        "Groceries",
    ]
    assert [t.name for t in session.get(1).tags] == ["Business", "Trip"]
    assert session.get(0).tags == []


def test_merchant_counts_most_frequent_first():
    session = ReviewSession(
        [make_txn("a", merchant="Bakery"), make_txn("b"), make_txn("c"), make_txn("d")]
    )
    assert session.merchant_counts() == [("Coffee Bar", 3), ("Bakery", 1)]
