"""Reusable widgets for the record browser."""

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Input, Label, Static
from rich.text import Text

# Color tags the plain-text renderer uses that Rich spells differently
RICH_COLORS = {"gray": "bright_black"}


def rich_style(color: str | None, bold: bool = False) -> str:
    style = RICH_COLORS.get(color or "", color or "")
    if bold:
        style = f"bold {style}".strip()
    return style


def styled(text: str, color: str | None, bold: bool = False) -> Text:
    """Plain text (never parsed as markup) in a registry color."""
    return Text(text, style=rich_style(color, bold))


class FilterBar(Static):
    """Field name and pattern input for the single active filter."""

    DEFAULT_CSS = """
    FilterBar {
        height: 3;
        border: solid $primary;
        padding: 0 1;
    }

    FilterBar Horizontal {
        height: 1;
    }

    FilterBar .field-name {
        width: auto;
        text-style: bold;
        color: $accent;
        margin-right: 1;
    }

    FilterBar Input {
        width: 1fr;
        height: 1;
        border: none;
        padding: 0;
    }
    """

    def __init__(self, field_label: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._field_label = field_label

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield Label(styled(f"{self._field_label} ~", None), classes="field-name", id="filter-field")
            yield Input(placeholder="regex, Enter to apply, Esc to clear", id="filter-input")

    def set_field(self, label: str) -> None:
        self._field_label = label
        self.query_one("#filter-field", Label).update(styled(f"{label} ~", None))

    @property
    def input(self) -> Input:
        return self.query_one("#filter-input", Input)


class StatusLine(Static):
    """One-line summary of the current view, or the last problem."""

    DEFAULT_CSS = """
    StatusLine {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }

    StatusLine.error {
        color: $error;
    }
    """

    def show(self, message: str, error: bool = False) -> None:
        self.set_class(error, "error")
        self.update(Text(message))
