"""Terminal prompts for the review loop (prompt_toolkit-based).

The review loop only talks to a :class:`TerminalPrompter`; keeping the
prompt_toolkit details here lets tests drive the loop with a scripted fake and
drive these widgets with a pipe input.

Conventions
-----------
- Ctrl-C or EOF at any prompt raises :class:`~monarch_review.errors.ReviewAborted`.
- Esc inside a picker cancels just that picker and returns ``None``.
"""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.application import Application
from prompt_toolkit.completion import Completer, Completion, ThreadedCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout
from prompt_toolkit.validation import ValidationError, Validator
from prompt_toolkit.widgets import Box, CheckboxList, Label

from .errors import MonarchError, ReviewAborted
from .logging_setup import get_logger
from .models import Merchant

_logger = get_logger("monarch_review.term_ui")

NOTES_MAX_CHARS = 1024


# ----------------------------------------------------------------------------
# Choices and ranking
# ----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Choice:
    """One selectable option.

    ``title`` is what the operator sees and types against; ``name`` is the
    bare entity name used to float exact matches to the top.
    """

    value: Any
    title: str
    name: str


def rank_choices(query: str, choices: Sequence[Choice]) -> list[Choice]:
    """Case-insensitive substring filter; exact name matches first, then by title."""

    q = query.strip().casefold()
    matched = [c for c in choices if q in c.title.casefold()]
    return sorted(matched, key=lambda c: (c.name.casefold() != q, c.title))


class ChoiceCompleter(Completer):
    def __init__(self, choices: Sequence[Choice]) -> None:
        self._choices = list(choices)

    def get_completions(self, document, complete_event):
        text = document.text
        for c in rank_choices(text, self._choices):
            yield Completion(c.title, start_position=-len(text))


class MerchantCompleter(Completer):
    """Live merchant suggestions.

    Empty input offers the current merchant and the original statement
    description. Otherwise the top merchants from ``search`` are listed, then
    the typed text as a new merchant, then the original description.

    The prompt wraps this in a ``ThreadedCompleter`` so lookups never block
    typing; the lock keeps lookups to one request at a time.
    """

    def __init__(
        self, *, current: str, original: str, search: Callable[[str], Sequence[Merchant]]
    ) -> None:
        self._current = current
        self._original = original
        self._search = search
        self._lock = threading.Lock()

    def get_completions(self, document, complete_event):
        text = document.text
        start = -len(text)
        original = Completion(
            self._original, start_position=start, display_meta="Original Merchant"
        )
        if not text:
            yield Completion(self._current, start_position=start, display_meta="Current")
            yield original
            return
        try:
            with self._lock:
                merchants = self._search(text)
        except MonarchError as e:
            _logger.warning("Merchant lookup failed: %s", e)
            merchants = []
        for m in merchants:
            count = "" if m.transaction_count is None else str(m.transaction_count)
            yield Completion(m.name, start_position=start, display_meta=count)
        yield Completion(text, start_position=start, display_meta="Create New Merchant")
        yield original


# ----------------------------------------------------------------------------
# Validators
# ----------------------------------------------------------------------------


class NotesValidator(Validator):
    def __init__(self, max_chars: int = NOTES_MAX_CHARS) -> None:
        self._max = max_chars

    def validate(self, document) -> None:
        n = len(document.text)
        if n > self._max:
            raise ValidationError(message=f"Max length: {self._max} chars (curr {n})")


class DateValidator(Validator):
    def validate(self, document) -> None:
        try:
            date.fromisoformat(document.text.strip())
        except ValueError:
            raise ValidationError(message="Enter a date as YYYY-MM-DD") from None


class _ChoiceValidator(Validator):
    def __init__(self, choices: Sequence[Choice]) -> None:
        self._choices = choices

    def validate(self, document) -> None:
        text = document.text
        if text.strip() and not rank_choices(text, self._choices):
            raise ValidationError(message="No match. Pick one of the suggestions.")


# ----------------------------------------------------------------------------
# Prompter
# ----------------------------------------------------------------------------


@contextlib.contextmanager
def _abort_on_interrupt() -> Iterator[None]:
    try:
        yield
    except (KeyboardInterrupt, EOFError) as e:
        raise ReviewAborted() from e


def _cancel_bindings() -> KeyBindings:
    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    return kb


class TerminalPrompter:
    """Interactive prompts backed by prompt_toolkit.

    ``input``/``output`` are forwarded to every session/application so tests
    can use ``create_pipe_input()`` and ``DummyOutput()``.
    """

    def __init__(self, *, input: Any = None, output: Any = None) -> None:
        self._input = input
        self._output = output
        self._command_session: PromptSession | None = None

    def _session(self, **kwargs: Any) -> PromptSession:
        return PromptSession(input=self._input, output=self._output, **kwargs)

    def command(self) -> str:
        if self._command_session is None:
            self._command_session = self._session()
        with _abort_on_interrupt():
            return self._command_session.prompt("Command: ")

    def text(self, message: str, *, default: str = "", validator: Validator | None = None) -> str:
        with _abort_on_interrupt():
            return self._session().prompt(
                message,
                default=default,
                validator=validator,
                validate_while_typing=False,
            )

    def notes(self, default: str = "") -> str:
        return self.text("Description: ", default=default, validator=NotesValidator())

    def choose(
        self, message: str, choices: Sequence[Choice], *, default: Choice | None = None
    ) -> Any | None:
        """Autocomplete over ``choices``; returns the chosen value or ``None``.

        Empty input accepts ``default``. Text that is not an exact title
        resolves to the top-ranked match.
        """

        if not choices:
            return None
        with _abort_on_interrupt():
            result = self._session(key_bindings=_cancel_bindings()).prompt(
                message,
                default=default.title if default else "",
                completer=ChoiceCompleter(choices),
                complete_while_typing=True,
                validator=_ChoiceValidator(choices),
                validate_while_typing=False,
            )
        if result is None:
            return None
        if not result.strip():
            return default.value if default else None
        for c in choices:
            if c.title == result:
                return c.value
        ranked = rank_choices(result, choices)
        return ranked[0].value if ranked else None

    def merchant(
        self,
        *,
        current: str,
        original: str,
        search: Callable[[str], Sequence[Merchant]],
    ) -> str | None:
        with _abort_on_interrupt():
            result = self._session(key_bindings=_cancel_bindings()).prompt(
                "Merchant: ",
                default=current,
                completer=ThreadedCompleter(
                    MerchantCompleter(current=current, original=original, search=search)
                ),
                complete_while_typing=True,
            )
        if result is None or not result.strip():
            return None
        return result.strip()

    def ask_date(self, message: str, *, default: date) -> date | None:
        with _abort_on_interrupt():
            result = self._session(key_bindings=_cancel_bindings()).prompt(
                message,
                default=default.isoformat(),
                validator=DateValidator(),
                validate_while_typing=False,
            )
        if result is None:
            return None
        return date.fromisoformat(result.strip())

    def choose_many(
        self, message: str, choices: Sequence[Choice], *, selected: Sequence[Any] = ()
    ) -> list[Any] | None:
        """Checkbox list; Space/Enter toggle, Tab confirms, Esc cancels."""

        if not choices:
            return []
        cl: CheckboxList = CheckboxList([(c.value, c.title) for c in choices])
        cl.current_values = [c.value for c in choices if c.value in selected]

        kb = KeyBindings()

        @kb.add("tab")
        def _(event) -> None:  # pragma: no cover - interactive
            event.app.exit(result=list(cl.current_values))

        @kb.add("escape")
        def _cancel(event) -> None:  # pragma: no cover - interactive
            event.app.exit(result=None)

        @kb.add("c-c")
        def _abort(event) -> None:  # pragma: no cover - interactive
            event.app.exit(exception=KeyboardInterrupt())

        header = f"{message}\nSpace/Enter to toggle • Tab to confirm • Esc to cancel"
        app: Application = Application(
            layout=Layout(Box(HSplit([Label(text=header), cl]), padding=1)),
            key_bindings=kb,
            full_screen=False,
            input=self._input,
            output=self._output,
        )
        with _abort_on_interrupt():
            result = app.run()
        if result is None:
            return None
        # Keep the on-screen order rather than the toggle order.
        chosen = set(result)
        return [c.value for c in choices if c.value in chosen]


__all__ = [
    "Choice",
    "ChoiceCompleter",
    "DateValidator",
    "MerchantCompleter",
    "NOTES_MAX_CHARS",
    "NotesValidator",
    "TerminalPrompter",
    "rank_choices",
]
