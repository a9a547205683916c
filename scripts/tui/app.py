"""
Record Browser TUI Application.

Full-screen alternative to the prompt loop in browse.py.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure scripts directory is in path
SCRIPT_DIR = Path(__file__).resolve().parent.parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from textual.app import App  # noqa: E402
from textual.binding import Binding  # noqa: E402

from browse import BrowseState  # noqa: E402
from tui.az_provider import BrowserLinkOpener  # noqa: E402
from tui.providers import Dataset, LinkOpener, SourceUnavailableError  # noqa: E402
from tui.views.browser import BrowserScreen  # noqa: E402
from tui.views.record_detail import RecordDetailScreen  # noqa: E402

logger = logging.getLogger(__name__)


class RecordBrowserApp(App):
    """Main record browser application."""

    TITLE = "Azure DevOps Browser"

    CSS = """
    Screen {
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=False),
    ]

    def __init__(
        self,
        dataset: Dataset,
        records: list,
        state: BrowseState | None = None,
        opener: LinkOpener | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._dataset = dataset
        self._records = records
        self._state = state
        self._opener = opener or BrowserLinkOpener()
        self.sub_title = dataset.title

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.push_screen(BrowserScreen(self._dataset, self._records, self._state))

    def refresh_records(self) -> None:
        """Fetch again; on failure keep showing the last records."""
        try:
            records = self._dataset.source.fetch()
        except SourceUnavailableError as e:
            logger.warning("Refresh failed: %s", e)
            self.notify(f"Refresh failed: {e}", severity="error")
            return
        self._records = records
        if isinstance(self.screen, BrowserScreen):
            self.screen.set_records(records)
        self.notify(f"Loaded {len(records)} {self._dataset.title.lower()}")

    def show_record(self, record) -> None:
        """Show detail screen for one record."""
        fields = self._dataset.detail_descriptors()
        description = None
        if self._dataset.description_field:
            description = self._dataset.registry.describe(self._dataset.description_field)
        title = self._dataset.item_name.capitalize()
        if fields:
            title += f" {fields[0].label}: {fields[0].raw_value(record) or '-'}"
        self.push_screen(
            RecordDetailScreen(
                record,
                title=title,
                fields=fields,
                description=description,
                url=self._dataset.link_for(record),
            )
        )

    def open_link(self, url: str) -> None:
        self._opener.open(url)
        self.notify(f"Opened {url}")


def run(dataset: Dataset, records: list, state: BrowseState | None = None) -> None:
    """Run the TUI application."""
    app = RecordBrowserApp(dataset, records, state)
    app.run()
