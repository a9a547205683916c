"""Detail view for drilling into a single record."""

from textual.app import ComposeResult
from textual.containers import ScrollableContainer
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, Static

from fields import FieldDescriptor
from formatting import PLACEHOLDER
from normalize import cell_value
from tui.views.widgets import styled


class FieldsPanel(Static):
    """Label/value pairs for every field of the record."""

    DEFAULT_CSS = """
    FieldsPanel {
        height: auto;
        border: solid $primary;
        padding: 1;
        margin-bottom: 1;
    }
    """

    def __init__(self, record, fields: list[FieldDescriptor], **kwargs) -> None:
        super().__init__(**kwargs)
        self._record = record
        self._fields = fields

    def compose(self) -> ComposeResult:
        width = max((len(f.label) for f in self._fields), default=0) + 2
        for descriptor in self._fields:
            text = styled(f"{descriptor.label + ':':<{width}}", descriptor.color, bold=True)
            text.append(cell_value(self._record, descriptor))
            yield Label(text)


class RecordDetailScreen(Screen):
    """Screen showing every field of one record."""

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("escape", "back", "Back"),
        ("b", "back", "Back"),
        ("o", "open_link", "Open in browser"),
    ]

    DEFAULT_CSS = """
    RecordDetailScreen {
        padding: 1;
    }

    RecordDetailScreen .record-header {
        text-style: bold;
        margin-bottom: 1;
    }

    RecordDetailScreen .description {
        border: solid $secondary;
        padding: 1;
        margin-bottom: 1;
    }

    RecordDetailScreen .link {
        color: $accent;
    }
    """

    def __init__(
        self,
        record,
        title: str,
        fields: list[FieldDescriptor],
        description: FieldDescriptor | None = None,
        url: str = "",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._record = record
        self._title = title
        self._fields = fields
        self._description = description
        self._url = url

    def compose(self) -> ComposeResult:
        yield Header()

        with ScrollableContainer():
            yield Label(styled(self._title, None), classes="record-header")
            yield FieldsPanel(self._record, self._fields)

            if self._description is not None:
                text = cell_value(self._record, self._description)
                if text == PLACEHOLDER:
                    text = "- no description -"
                yield Label(styled(text, None), classes="description")

            yield Label(styled(f"Web URL: {self._url or PLACEHOLDER}", None), classes="link")

        yield Footer()

    def action_open_link(self) -> None:
        """Open the record's web link."""
        if not self._url:
            self.notify("No link for this record", severity="warning")
            return
        self.app.open_link(self._url)

    def action_back(self) -> None:
        """Go back to the table."""
        self.app.pop_screen()

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit()
