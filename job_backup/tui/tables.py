from collections import Counter

from rich.markup import escape
from rich.panel import Panel
from rich.table import Column, Table
from rich.tree import Tree

from job_backup.kinds import type_label
from job_backup.models import ArchiveCandidate, ItemDescriptor
from job_backup.tui.enums import CANDIDATE_STATUS_STYLE, CandidateStatus, UIStyle


def candidate_status(candidate: ArchiveCandidate) -> CandidateStatus:
    return CandidateStatus.UPDATE if candidate.exists else CandidateStatus.CREATE


def candidate_label(candidate: ArchiveCandidate) -> str:
    return type_label(candidate.declared_kind, candidate.is_container)


def _folder_icon(is_container: bool) -> str:
    return "[bold]+[/bold]" if is_container else "-"


class ItemTree:
    @staticmethod
    def items_tree(items: list[ItemDescriptor], title: str = "items") -> Tree:
        tree = Tree(f"[bold]{title}[/bold]")
        nodes: dict[str, Tree] = {}
        for item in items:
            parent = nodes.get(item.parent_full_name or "", tree)
            label = (
                f"{_folder_icon(item.is_container)} {escape(item.leaf_name)} "
                f"[{UIStyle.DIM.value}]{escape(item.kind_label)}[/{UIStyle.DIM.value}]"
            )
            nodes[item.full_name] = parent.add(label)
        return tree

    @staticmethod
    def candidates_tree(candidates: list[ArchiveCandidate], title: str = "archive") -> Tree:
        tree = Tree(f"[bold]{title}[/bold]")
        nodes: dict[str, Tree] = {}
        for candidate in candidates:
            parent = nodes.get(candidate.parent_full_name or "", tree)
            status = candidate_status(candidate)
            style = CANDIDATE_STATUS_STYLE[status]
            suffix = " (synthetic)" if candidate.is_synthetic else ""
            label = (
                f"{_folder_icon(candidate.is_container)} {escape(candidate.leaf_name)} "
                f"[{UIStyle.DIM.value}]{escape(candidate_label(candidate))}{suffix}[/{UIStyle.DIM.value}] "
                f"[{style}]{status.value}[/{style}]"
            )
            nodes[candidate.full_name] = parent.add(label)
        return tree


class PreviewTable:
    @staticmethod
    def summary_block(session_id: str, candidates: list[ArchiveCandidate]):
        counts = Counter(candidate_status(item).value for item in candidates)
        synthetic = sum(1 for item in candidates if item.is_synthetic)
        chips = [f"{key}={value}" for key, value in sorted(counts.items()) if value > 0]
        if not chips:
            chips = ["none"]

        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Session", session_id)
        table.add_row("Candidates", str(len(candidates)))
        table.add_row("Synthetic folders", str(synthetic))
        table.add_row("Statuses", "  ".join(chips))
        return table

    @staticmethod
    def candidates_table(candidates: list[ArchiveCandidate]) -> Table:
        table = Table(
            Column(header="Item", overflow="fold"),
            Column(header="Type", width=22),
            Column(header="Status", width=8),
            expand=True,
            header_style="bold",
        )
        for candidate in candidates:
            status = candidate_status(candidate)
            style = CANDIDATE_STATUS_STYLE[status]
            table.add_row(
                escape(candidate.full_name),
                escape(candidate_label(candidate)),
                f"[{style}]{status.value}[/{style}]",
            )
        return table


class ApplyTable:
    @staticmethod
    def stats_panel(applied: int, failed: int) -> Panel:
        stats: dict[str, str] = {
            "applied": str(applied),
            "failed": str(failed),
        }
        table = Table(show_header=False, box=None)
        for key, value in stats.items():
            table.add_row(f"[bold]{key}[/bold]", value)
        return Panel(
            table,
            title="apply",
            border_style=UIStyle.GREEN.value if failed == 0 else UIStyle.RED.value,
        )

    @staticmethod
    def applied_table(applied: list[str]) -> Table:
        table = Table(Column(header="Applied", overflow="fold"), expand=True, header_style="bold")
        for full_name in applied:
            table.add_row(escape(full_name))
        return table
