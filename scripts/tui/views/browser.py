"""Main table view with the single-filter bar."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Input

from browse import BrowseState, FieldSelected, Idle, PatternEntered, filtered_view, summary_line
from filtering import InvalidPatternError, compile_pattern
from normalize import cell_value
from tui.providers import Dataset
from tui.views.widgets import FilterBar, StatusLine, styled


class BrowserScreen(Screen):
    """Records table; one active filter at a time."""

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("f", "focus_filter", "Filter"),
        ("c", "next_field", "Filter column"),
        ("escape", "clear_filter", "Show all"),
    ]

    DEFAULT_CSS = """
    BrowserScreen DataTable {
        height: 1fr;
    }
    """

    def __init__(self, dataset: Dataset, records: list, state: BrowseState | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._dataset = dataset
        self._records = records
        self._fields = dataset.descriptors()
        self._view: list = []
        self.state: BrowseState = state or Idle()
        if isinstance(self.state, (FieldSelected, PatternEntered)):
            self._field_index = self._index_of(self.state.field)
        else:
            self._field_index = 0

    def _index_of(self, field_id: str) -> int:
        target = self._dataset.registry.describe(field_id).id
        for i, descriptor in enumerate(self._fields):
            if descriptor.id == target:
                return i
        return 0

    @property
    def filter_field(self) -> str:
        return self._fields[self._field_index].id

    @property
    def view(self) -> list:
        return self._view

    def compose(self) -> ComposeResult:
        yield Header()
        yield FilterBar(self._fields[self._field_index].label)
        yield DataTable(cursor_type="row", zebra_stripes=True)
        yield StatusLine()
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        for descriptor in self._fields:
            table.add_column(styled(descriptor.label, descriptor.color, bold=True), key=descriptor.id)
        if isinstance(self.state, PatternEntered):
            self.query_one(FilterBar).input.value = self.state.pattern.pattern
        self.refresh_table()
        table.focus()

    def set_records(self, records: list) -> None:
        self._records = records
        self.refresh_table()

    def refresh_table(self) -> None:
        """Re-filter the full record set and redraw every row."""
        self._view = filtered_view(self._records, self.state, self._dataset)
        table = self.query_one(DataTable)
        table.clear()
        for position, record in enumerate(self._view):
            cells = []
            for descriptor in self._fields:
                value = cell_value(record, descriptor)
                cells.append(styled(value, descriptor.value_colors.get(value)))
            table.add_row(*cells, key=str(position))
        self._show_summary()

    def _show_summary(self) -> None:
        summary = summary_line(self._view, self._records, self.state, self._dataset)
        self.query_one(StatusLine).show(summary)

    def apply_pattern(self, text: str) -> bool:
        """Filter the current column by text; False if it does not compile."""
        text = text.strip()
        if not text:
            self.state = Idle()
            self.refresh_table()
            return True
        try:
            self.state = PatternEntered(self.filter_field, compile_pattern(text))
        except InvalidPatternError as e:
            self.state = FieldSelected(self.filter_field)
            self.refresh_table()
            self.query_one(StatusLine).show(str(e), error=True)
            return False
        self.refresh_table()
        return True

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if self.apply_pattern(event.value):
            self.query_one(DataTable).focus()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        position = int(event.row_key.value)
        if 0 <= position < len(self._view):
            self.app.show_record(self._view[position])

    def action_focus_filter(self) -> None:
        """Start entering a pattern for the current column."""
        self.query_one(FilterBar).input.focus()

    def action_next_field(self) -> None:
        """Cycle the filter column; any active filter is dropped."""
        self._field_index = (self._field_index + 1) % len(self._fields)
        self.query_one(FilterBar).set_field(self._fields[self._field_index].label)
        if isinstance(self.state, PatternEntered):
            self.state = FieldSelected(self.filter_field)
            self.refresh_table()

    def action_clear_filter(self) -> None:
        """Show all records."""
        self.state = Idle()
        self.query_one(FilterBar).input.value = ""
        self.refresh_table()
        self.query_one(DataTable).focus()

    def action_refresh(self) -> None:
        self.app.refresh_records()

    def action_quit(self) -> None:
        self.app.exit()
