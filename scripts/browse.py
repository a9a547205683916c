"""
Interactive browse loop.

Render the table, ask for a column to filter on (or another command),
ask for a pattern, re-filter the full record set, render again. Only one
filter is ever active: choosing a new column discards the old filter and
"show all" clears it.

The loop state is an explicit value:

    Idle                    no filter, full record set
    FieldSelected(field)    waiting for a pattern for field
    PatternEntered(f, p)    filter f ~ p active
    Exited                  loop finished

Prompts and output go through injected callables so the loop can be
driven by tests.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence, Union

from fields import FieldDescriptor
from filtering import NO_FILTER, ActiveFilter, InvalidPatternError, apply_active, compile_pattern
from formatting import colorize, wrap_text
from layout import plan_columns, terminal_width
from normalize import cell_value
from table import render_details, render_table
from tui.providers import Dataset, LinkOpener, SourceUnavailableError

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

EXIT_WORDS = ("q", "quit", "exit")
ALL_WORDS = ("a", "all", "show all", "0")
HELP_WORDS = ("h", "help", "?", "o", "options")
REFRESH_WORDS = ("r", "refresh")
DETAIL_WORDS = ("d", "details", "view")
YES_WORDS = ("y", "yes")


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class FieldSelected:
    field: str


@dataclass(frozen=True)
class PatternEntered:
    field: str
    pattern: re.Pattern


@dataclass(frozen=True)
class Exited:
    pass


BrowseState = Union[Idle, FieldSelected, PatternEntered, Exited]


class PromptClosed(Exception):
    """The operator closed the input stream."""


def console_ask(prompt: str) -> str:
    """Read one answer from the terminal; EOF and Ctrl-C close the prompt."""
    try:
        return input(prompt)
    except (EOFError, KeyboardInterrupt) as e:
        print()
        raise PromptClosed() from e


def console_emit(text: str) -> None:
    print(text)


def match_field(choice: str, fields: Sequence[FieldDescriptor]) -> FieldDescriptor | None:
    """Column by 1-based ordinal, or by label/id (case-insensitive)."""
    choice = choice.strip()
    if choice.isdigit():
        index = int(choice)
        if 1 <= index <= len(fields):
            return fields[index - 1]
        return None
    lowered = choice.lower()
    for descriptor in fields:
        names = (descriptor.label, descriptor.id, *descriptor.aliases)
        if any(lowered == name.lower() for name in names):
            return descriptor
    return None


def active_filter(state: BrowseState) -> ActiveFilter:
    """The filter restricting the view; only PatternEntered has one."""
    if isinstance(state, PatternEntered):
        return ActiveFilter(state.field, state.pattern)
    return NO_FILTER


def filtered_view(
    records: Sequence[Record],
    state: BrowseState,
    dataset: Dataset,
) -> list[Record]:
    """Records visible in state; filters always start from the full set."""
    return apply_active(records, active_filter(state), dataset.registry)


def summary_line(view: Sequence[Record], records: Sequence[Record], state: BrowseState, dataset: Dataset) -> str:
    summary = f"{len(view)} of {len(records)} {dataset.title.lower()}"
    active = active_filter(state)
    if active.active:
        summary += f" | filter: {active.describe(dataset.registry)}"
    return summary


def initial_state(field_id: str | None, pattern: str | None) -> BrowseState:
    """State for a filter given up front; raises InvalidPatternError."""
    if field_id and pattern is not None:
        return PatternEntered(field_id, compile_pattern(pattern))
    return Idle()


@dataclass
class BrowseSession:
    """Owns the record set and drives the prompt/filter/render cycle."""

    dataset: Dataset
    records: list[Record]
    ask: Callable[[str], str] = console_ask
    emit: Callable[[str], None] = console_emit
    opener: LinkOpener | None = None
    use_color: bool = True
    width: int | None = None
    fields: list[FieldDescriptor] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.fields:
            self.fields = self.dataset.descriptors()

    # ---------- rendering ----------
    def render(self, state: BrowseState) -> list[Record]:
        view = filtered_view(self.records, state, self.dataset)
        width = self.width or terminal_width()
        widths = plan_columns(self.fields, width, len(view), numbered=True)
        self.emit(render_table(view, self.fields, widths, self.use_color, numbered=True))
        if isinstance(state, PatternEntered) and not view:
            self.emit(colorize("No records match the current filter.", "yellow", self.use_color))
        self.emit(colorize(summary_line(view, self.records, state, self.dataset), "gray", self.use_color))
        return view

    def help_text(self) -> str:
        columns = "  ".join(f"{i}) {f.label}" for i, f in enumerate(self.fields, start=1))
        lines = [
            colorize("Options:", "blue", self.use_color),
            f"  Filter by column: {columns}",
            "  a) Show all (clear filter)",
            "  d N) View details of row N",
            "  r) Refresh records",
            "  h) Help (show options)",
            "  q) Exit",
        ]
        return "\n".join(lines)

    def error(self, message: str) -> None:
        self.emit(colorize(message, "red", self.use_color))

    # ---------- transitions ----------
    def step(self, state: BrowseState, view: list[Record]) -> BrowseState:
        """Prompt once and return the next state."""
        if isinstance(state, FieldSelected):
            return self._ask_pattern(state)
        return self._ask_command(state, view)

    def _ask_pattern(self, state: FieldSelected) -> BrowseState:
        label = self.dataset.registry.describe(state.field).label
        text = self.ask(f"Pattern to filter {label} (regex, blank to cancel): ").strip()
        if not text:
            return Idle()
        try:
            return PatternEntered(state.field, compile_pattern(text))
        except InvalidPatternError as e:
            self.error(f"{e}. Try again.")
            return state

    def _ask_command(self, state: BrowseState, view: list[Record]) -> BrowseState:
        answer = self.ask("Filter column (number/label), a=all, d N=details, h=help, q=quit: ")
        choice = answer.strip()
        normalized = choice.lower()

        if normalized in EXIT_WORDS:
            return Exited()
        if normalized in ALL_WORDS:
            return Idle()
        if normalized in HELP_WORDS:
            self.emit(self.help_text())
            return state
        if normalized in REFRESH_WORDS:
            self.refresh()
            return state

        command, _, rest = normalized.partition(" ")
        if command in DETAIL_WORDS:
            self.show_details(view, rest.strip())
            return state

        descriptor = match_field(choice, self.fields)
        if descriptor is None:
            self.error("Invalid option. Type 'h' for help.")
            return state
        return FieldSelected(descriptor.id)

    # ---------- side actions ----------
    def refresh(self) -> None:
        self.emit(colorize(f"Refreshing {self.dataset.title.lower()}…", "blue", self.use_color))
        try:
            self.records = self.dataset.source.fetch()
        except SourceUnavailableError as e:
            logger.warning("Refresh failed: %s", e)
            self.error(f"Refresh failed, keeping previous records: {e}")

    def show_details(self, view: list[Record], index_text: str) -> None:
        if not view:
            self.error("No rows to show.")
            return
        if not index_text:
            index_text = self.ask(f"Row number (1-{len(view)}): ").strip()
        if not index_text.isdigit() or not 1 <= int(index_text) <= len(view):
            self.error(f"Must be a row number between 1 and {len(view)}.")
            return

        record = view[int(index_text) - 1]
        self.emit(self.detail_text(record))

        url = self.dataset.link_for(record)
        if url and self.opener is not None:
            answer = self.ask("Open in browser? [y/N]: ").strip().lower()
            if answer in YES_WORDS:
                self.opener.open(url)

    def detail_text(self, record: Record) -> str:
        fields = self.dataset.detail_descriptors([f.id for f in self.fields])
        width = min(self.width or terminal_width(), 100)
        lines = [
            "",
            colorize(f"Details for {self.dataset.item_name}", None, self.use_color, bold=True),
            render_details(record, fields, width, self.use_color),
        ]
        if self.dataset.description_field:
            description = self.dataset.registry.describe(self.dataset.description_field)
            text = cell_value(record, description)
            lines.append(colorize("Description:", "cyan", self.use_color))
            lines.append(wrap_text(text if text != "-" else "- no description -", width))
        url = self.dataset.link_for(record)
        lines.append(f"{colorize('Web URL:', 'blue', self.use_color)} {url or '-'}")
        return "\n".join(lines)

    # ---------- main loop ----------
    def run(self, state: BrowseState | None = None) -> BrowseState:
        """Loop until the operator exits; returns the final state."""
        state = state or Idle()
        while not isinstance(state, Exited):
            view = self.render(state)
            try:
                state = self.step(state, view)
            except PromptClosed:
                state = Exited()
        self.emit(colorize("Goodbye!", "green", self.use_color))
        return state
