from rich.console import Console
from rich.markup import escape

from job_backup.exports.service import ExportResult
from job_backup.models import ApplyResult, ArchiveCandidate, ItemDescriptor
from job_backup.tui.enums import UIStyle
from job_backup.tui.sections import UISection
from job_backup.tui.tables import ApplyTable, ItemTree, PreviewTable
from job_backup.utils import compact_home_path


class BackupConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_items(self, items: list[ItemDescriptor], root: str) -> None:
        if not items:
            self.console.print(
                UISection.note(
                    "items",
                    f"No jobs or folders found in {escape(compact_home_path(root))}.",
                    style=UIStyle.YELLOW.value,
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "live items",
                ItemTree.items_tree(items, title=escape(compact_home_path(root))),
                style=UIStyle.BLUE.value,
            )
        )

    def render_export(self, result: ExportResult) -> None:
        body = (
            f"Exported [bold]{len(result.exported)}[/bold] items\n"
            f"{escape(compact_home_path(result.path))}"
        )
        self.console.print(
            UISection.note(
                "export",
                body,
                style=UIStyle.GREEN.value if result.exported else UIStyle.YELLOW.value,
            )
        )
        if result.skipped:
            skipped_text = "\n".join(f"- {escape(item)}" for item in result.skipped)
            self.console.print(
                UISection.note(
                    "skipped (no readable config.xml)",
                    skipped_text,
                    style=UIStyle.YELLOW.value,
                )
            )

    def render_session_created(self, session_id: str, candidates: int) -> None:
        self.console.print(
            UISection.note(
                "upload",
                f"Session: [bold]{session_id}[/bold]\n"
                f"Importable entries: {candidates}",
                style=UIStyle.GREEN.value,
            )
        )
        self.console.print(
            UISection.note(
                "next",
                "Review the archive, then apply a selection.\n"
                f"- job-backup import preview -s {session_id}\n"
                f"- job-backup import apply -s {session_id} --all",
                style=UIStyle.DIM.value,
            )
        )

    def render_preview(
        self, session_id: str, candidates: list[ArchiveCandidate], verbose: bool = False
    ) -> None:
        self.console.print(
            UISection.wrap(
                "import preview",
                PreviewTable.summary_block(session_id, candidates),
                style=UIStyle.BLUE.value,
            )
        )
        body = (
            PreviewTable.candidates_table(candidates)
            if verbose
            else ItemTree.candidates_tree(candidates)
        )
        self.console.print(UISection.wrap("candidates", body, style=UIStyle.CYAN.value))

    def render_apply_result(self, result: ApplyResult, verbose: bool = False) -> None:
        self.console.print(
            ApplyTable.stats_panel(
                applied=result.applied_count, failed=result.failures_count
            )
        )
        if verbose and result.applied:
            self.console.print(
                UISection.wrap(
                    "applied",
                    ApplyTable.applied_table(result.applied),
                    style=UIStyle.GREEN.value,
                )
            )
        if result.failures:
            failure_text = "\n".join(
                f"- {escape(item.full_name)}: {escape(item.error)}"
                for item in result.failures
            )
            self.console.print(
                UISection.note("failures", failure_text, style=UIStyle.RED.value)
            )

    def render_no_result(self, session_id: str) -> None:
        self.console.print(
            UISection.note(
                "result",
                f"No apply result recorded for session {escape(session_id)}.",
                style=UIStyle.YELLOW.value,
            )
        )

    def render_cleanup(self, session_id: str, existed: bool) -> None:
        text = "deleted" if existed else "not found (nothing to delete)"
        self.console.print(
            UISection.note(
                "cleanup",
                f"Session {escape(session_id)}: {text}",
                style=UIStyle.GREEN.value if existed else UIStyle.YELLOW.value,
            )
        )

    def render_pruned(self, removed: list[str]) -> None:
        if not removed:
            body = "No expired sessions."
        else:
            body = "\n".join(f"- {item}" for item in removed)
        self.console.print(UISection.note("prune", body, style=UIStyle.DIM.value))
