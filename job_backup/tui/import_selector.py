"""Interactive Textual-based selector for archive candidates."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, SelectionList, Static
from textual.widgets.selection_list import Selection

from job_backup.models import ArchiveCandidate
from job_backup.tui.tables import candidate_label, candidate_status


class ImportSelectorApp(App[list[str]]):
    """Pick which archive entries to apply.

    Selecting a folder applies everything beneath it as well.
    """

    TITLE = "Import Selector"
    CSS_DEFAULT = """
    Screen {
        layout: vertical;
    }
    #info {
        height: 3;
        content-align: center middle;
        background: $primary-darken-2;
        color: $text;
        padding: 0 1;
    }
    SelectionList {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("a", "select_all", "Select All"),
        Binding("n", "select_none", "Select None"),
        Binding("enter", "confirm", "Confirm"),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(self, session_id: str, candidates: list[ArchiveCandidate]) -> None:
        super().__init__()
        self._session_id = session_id
        self._candidates = candidates

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(
            f"Session: {self._session_id} | "
            f"Candidates: {len(self._candidates)} | "
            f"Use [a] select all, [n] select none, [enter] confirm",
            id="info",
        )

        selections: list[Selection[str]] = []
        for candidate in self._candidates:
            indent = "  " * candidate.depth
            marker = "+" if candidate.is_container else "-"
            label = (
                f"{indent}{marker} {candidate.leaf_name} "
                f"({candidate_label(candidate)}, {candidate_status(candidate).value})"
            )
            selections.append(
                Selection(label, candidate.full_name, not candidate.is_synthetic)
            )

        yield SelectionList[str](*selections)
        yield Footer()

    def action_select_all(self) -> None:
        sel = self.query_one(SelectionList)
        sel.select_all()

    def action_select_none(self) -> None:
        sel = self.query_one(SelectionList)
        sel.deselect_all()

    def action_confirm(self) -> None:
        sel = self.query_one(SelectionList)
        self.exit(list(sel.selected))

    def action_quit_app(self) -> None:
        self.exit([])
