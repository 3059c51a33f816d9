from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from monarch_review.commands import Command
from monarch_review.errors import TransportError
from monarch_review.models import BulkTransactionUpdates, SearchOrder, TransactionUpdates
from monarch_review.review import HANDLERS, ReviewContext, dispatch, run_review
from monarch_review.session import ReviewSession

from tests.helpers.fakes import (
    GROCERIES,
    REIMBURSABLE,
    TAGS,
    FakeClient,
    ScriptedPrompter,
    make_txn,
)


def _ctx(client, prompter, printed, **kwargs) -> ReviewContext:
    return ReviewContext(client=client, prompter=prompter, print_fn=printed.append, **kwargs)


def test_every_command_has_a_handler():
    assert set(HANDLERS) == set(Command)


def test_next_then_quit_marks_reviewed_and_finishes(printed):
    a, b = make_txn("a"), make_txn("b", merchant="Bakery")
    client = FakeClient(review=[a, b])
    session = ReviewSession([a, b])

    run_review(_ctx(client, ScriptedPrompter(["n", "q"]), printed), session)

    assert client.calls_to("update_transaction") == [("a", TransactionUpdates(reviewed=True))]
    assert session.done
    assert session.get(0).needs_review is False
    assert session.get(1) == b


def test_session_starts_with_merchant_counts(printed):
    txns = [make_txn("a"), make_txn("b"), make_txn("c", merchant="Bakery")]
    run_review(_ctx(FakeClient(), ScriptedPrompter(["q"]), printed), ReviewSession(txns))

    assert printed[0].splitlines()[1:] == ["  2\tCoffee Bar", "  1\tBakery"]


def test_exhausted_input_ends_review(printed):
    session = ReviewSession([make_txn("a"), make_txn("b")])
    run_review(_ctx(FakeClient(), ScriptedPrompter([]), printed), session)
    assert session.done


def test_skip_and_previous_clamp(printed):
    session = ReviewSession([make_txn("a"), make_txn("b")])
    ctx = _ctx(FakeClient(), ScriptedPrompter(), printed)

    dispatch(ctx, session, Command.PREVIOUS)
    assert session.cursor == 0
    dispatch(ctx, session, Command.SKIP)
    dispatch(ctx, session, Command.SKIP)
    assert session.cursor == 1


def test_unknown_command_prints_help(printed):
    session = ReviewSession([make_txn("a")])
    run_review(_ctx(FakeClient(), ScriptedPrompter(["zz", "q"]), printed), session)

    assert 'Unknown command "zz"' in printed
    assert any(p.startswith("Available Commands:") for p in printed)


def test_previous_category_hint_is_shown(printed):
    history = [
        make_txn("h1", category=GROCERIES),
        make_txn("h2", category=GROCERIES),
        make_txn("h3"),
    ]
    client = FakeClient(search_results=history)
    session = ReviewSession([make_txn("a")])
    run_review(_ctx(client, ScriptedPrompter(["q"]), printed), session)

    block = next(p for p in printed if "1 of 1" in p)
    assert "(prev. txns.: 🛒  Groceries x2)" in block
    _, order, limit = client.calls_to("search_transactions")[0]
    assert (order, limit) == (SearchOrder.CHRONOLOGICAL, 50)


def test_failed_save_keeps_state_and_logs(printed, caplog):
    a = make_txn("a")
    client = FakeClient()
    client.fail["update_transaction"] = TransportError(500, "Internal Server Error", "boom")
    session = ReviewSession([a, make_txn("b")])

    with caplog.at_level(logging.ERROR, logger="monarch_review"):
        dispatch(_ctx(client, ScriptedPrompter(), printed), session, Command.NEXT)

    assert session.cursor == 0
    assert session.current == a
    assert "HTTP 500" in caplog.text
    assert printed == []


def test_notes_are_saved(printed):
    session = ReviewSession([make_txn("a", notes="old")])
    prompter = ScriptedPrompter(texts=["lunch with Sam"])
    client = FakeClient()

    dispatch(_ctx(client, prompter, printed), session, Command.NOTES)

    assert prompter.seen == [("notes", "old")]
    assert session.current.notes == "lunch with Sam"


def test_category_change_uses_current_as_default(printed):
    session = ReviewSession([make_txn("a", category=GROCERIES)])
    prompter = ScriptedPrompter(choices=["cat-restaurants"])
    client = FakeClient()

    dispatch(_ctx(client, prompter, printed), session, Command.CATEGORY)

    _, (message, values, default) = prompter.seen[0]
    assert message == "Category: "
    assert default.value == "cat-groceries"
    assert set(values) == {"cat-groceries", "cat-restaurants", "cat-uncat", "cat-reimb"}
    assert client.calls_to("update_transaction") == [
        ("a", TransactionUpdates(category="cat-restaurants"))
    ]
    assert session.current.category.name == "Restaurants"


def test_reimbursable_category_hides_from_reports(printed):
    session = ReviewSession([make_txn("a")])
    client = FakeClient()

    prompter = ScriptedPrompter(choices=[REIMBURSABLE.id])
    dispatch(_ctx(client, prompter, printed), session, Command.CATEGORY)

    [(_, updates)] = client.calls_to("update_transaction")
    assert updates.hide_from_reports is True
    assert session.current.hide_from_reports is True


def test_cancelled_category_picker_sends_nothing(printed):
    session = ReviewSession([make_txn("a")])
    client = FakeClient()
    dispatch(_ctx(client, ScriptedPrompter(choices=[None]), printed), session, Command.CATEGORY)
    assert client.calls_to("update_transaction") == []


def test_tags_replace_full_set(printed):
    session = ReviewSession([make_txn("a", tags=[TAGS[1]])])
    prompter = ScriptedPrompter(multi=[["tag-biz"]])
    client = FakeClient()

    dispatch(_ctx(client, prompter, printed), session, Command.TAGS)

    assert prompter.seen[0][1][2] == ["tag-trip"]
    assert client.calls_to("set_transaction_tags") == [("a", ["tag-biz"])]
    assert [t.name for t in session.current.tags] == ["Business"]


def test_categories_and_tags_load_once(printed):
    session = ReviewSession([make_txn("a")])
    client = FakeClient()
    prompter = ScriptedPrompter(choices=["cat-groceries", "cat-groceries"], multi=[[], []])
    ctx = _ctx(client, prompter, printed)

    for cmd in (Command.CATEGORY, Command.CATEGORY, Command.TAGS, Command.TAGS):
        dispatch(ctx, session, cmd)

    assert len(client.calls_to("get_categories")) == 1
    assert len(client.calls_to("get_tags")) == 1


def test_date_change(printed):
    session = ReviewSession([make_txn("a", day="2024-01-02")])
    prompter = ScriptedPrompter(dates=[date(2024, 2, 3)])
    client = FakeClient()

    dispatch(_ctx(client, prompter, printed), session, Command.DATE)

    assert prompter.seen == [("ask_date", date(2024, 1, 2))]
    assert session.current.date == "2024-02-03"


def test_merchant_rename_and_cancel(printed):
    session = ReviewSession([make_txn("a", merchant="SQ *CAFE")])
    prompter = ScriptedPrompter(merchants=["Cafe Luna", None])
    client = FakeClient()
    ctx = _ctx(client, prompter, printed)

    dispatch(ctx, session, Command.MERCHANT)
    dispatch(ctx, session, Command.MERCHANT)

    assert prompter.seen[0] == ("merchant", ("SQ *CAFE", "SQ *CAFE"))
    assert client.calls_to("update_transaction") == [("a", TransactionUpdates(name="Cafe Luna"))]
    assert session.current.merchant.name == "Cafe Luna"


def test_reload_replaces_current(printed):
    stale = make_txn("a", notes="stale")
    fresh = make_txn("a", notes="fresh")
    session = ReviewSession([stale])

    dispatch(_ctx(FakeClient(review=[fresh]), ScriptedPrompter(), printed), session, Command.RELOAD)

    assert session.current.notes == "fresh"


def test_find_prints_matches_newest_first(printed):
    results = [
        make_txn("s1", day="2024-01-01", notes="first"),
        make_txn("s2", day="2024-01-05", notes="second"),
        make_txn("x", merchant="Hardware Store"),
    ]
    client = FakeClient(search_results=results)
    prompter = ScriptedPrompter(texts=["coffee"])
    session = ReviewSession([make_txn("a")])

    dispatch(_ctx(client, prompter, printed), session, Command.FIND)

    assert prompter.seen == [("text", ("Search transactions: ", "Coffee Bar"))]
    assert len(printed) == 2
    assert "second" in printed[0] and "first" in printed[1]
    filters, order, limit = client.calls_to("search_transactions")[0]
    assert (filters.search, order, limit) == ("coffee", SearchOrder.CHRONOLOGICAL, 50)


def test_find_without_results(printed):
    session = ReviewSession([make_txn("a")])
    prompter = ScriptedPrompter(texts=["nothing"])
    dispatch(_ctx(FakeClient(), prompter, printed), session, Command.FIND)
    assert printed == ["[red]No results found[/red]"]


def test_bulk_category_update_patches_local_copies(printed):
    a = make_txn("a", day="2024-01-04")
    history = [make_txn("s1", day="2024-01-01"), make_txn("s2", day="2024-01-02"), a]
    client = FakeClient(search_results=history)
    prompter = ScriptedPrompter(
        texts=["Coffee Bar"],
        multi=[["s1", "a"], []],
        choices=["cat-groceries"],
    )
    session = ReviewSession([a, make_txn("b")])

    dispatch(_ctx(client, prompter, printed), session, Command.BULK)

    # Picker lists oldest first.
    assert prompter.seen[1] == ("choose_many", ("Transactions: ", ["s1", "s2", "a"], []))
    assert client.calls_to("bulk_update_transactions") == [
        (["s1", "a"], BulkTransactionUpdates(category_id="cat-groceries"))
    ]
    assert session.get(0).category == GROCERIES
    assert session.get(1).category.name == "Uncategorized"


def test_bulk_tags_still_applied_when_category_update_fails(printed):
    a = make_txn("a")
    client = FakeClient(search_results=[a])
    client.fail["bulk_update_transactions"] = TransportError(502, "Bad Gateway", "")
    prompter = ScriptedPrompter(
        texts=["Coffee Bar"], multi=[["a"], ["tag-trip"]], choices=["cat-groceries"]
    )
    session = ReviewSession([a])

    dispatch(_ctx(client, prompter, printed), session, Command.BULK)

    updates = [u for _, u in client.calls_to("bulk_update_transactions")]
    assert updates == [
        BulkTransactionUpdates(category_id="cat-groceries"),
        BulkTransactionUpdates(tags=["tag-trip"]),
    ]
    assert session.current.category.name == "Uncategorized"


def test_bulk_with_nothing_selected(printed):
    a = make_txn("a")
    client = FakeClient(search_results=[a])
    session = ReviewSession([a])

    dispatch(_ctx(client, ScriptedPrompter(texts=[""], multi=[[]]), printed), session, Command.BULK)

    assert printed == ["No transactions selected."]
    assert client.calls_to("bulk_update_transactions") == []


def test_link_opens_resolved_url(printed, tmp_path: Path):
    links = tmp_path / "links.json"
    links.write_text('{"Receipts": "https://mail.example.com/#search/{plaidName}+{date}"}')
    opened: list[str] = []
    session = ReviewSession([make_txn("a", plaid_name="ACME & CO")])
    ctx = _ctx(
        FakeClient(),
        ScriptedPrompter(choices=["Receipts"]),
        printed,
        links_path=links,
        open_url=opened.append,
    )

    dispatch(ctx, session, Command.LINK)

    assert opened == ["https://mail.example.com/#search/ACME%20%26%20CO+2024-01-02"]


def test_link_without_file_prints_hint(printed, tmp_path: Path):
    opened: list[str] = []
    ctx = _ctx(
        FakeClient(),
        ScriptedPrompter(),
        printed,
        links_path=tmp_path / "links.json",
        open_url=opened.append,
    )

    dispatch(ctx, ReviewSession([make_txn("a")]), Command.LINK)

    assert opened == []
    assert "does not exist" in printed[0]
    assert "links.json.sample" in printed[0]


def test_ctrl_c_during_a_request_ends_review(printed):
    class InterruptedClient(FakeClient):
        def update_transaction(self, transaction, updates):
            raise KeyboardInterrupt

    session = ReviewSession([make_txn("a"), make_txn("b")])
    run_review(_ctx(InterruptedClient(), ScriptedPrompter(["n", "n"]), printed), session)

    assert session.done
