import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

from job_backup.archive.writer import ArchiveWriter, export_filename
from job_backup.errors import NothingSelectedError
from job_backup.hierarchy.interfaces import IItemHierarchy
from job_backup.models import ItemDescriptor
from job_backup.paths import ancestors_of, tree_order
from job_backup.selection import expand_selection, normalize_selection


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    path: Path
    exported: list[str]
    skipped: list[str]


class ExportService:
    def __init__(self, hierarchy: IItemHierarchy) -> None:
        self._hierarchy = hierarchy

    def list_items(self) -> list[ItemDescriptor]:
        """Live items plus folder rows for ancestors missing from the listing."""
        by_full_name: dict[str, ItemDescriptor] = {}
        for item in self._hierarchy.list_all():
            by_full_name[item.full_name] = item
        for full_name in list(by_full_name):
            for ancestor in ancestors_of(full_name):
                by_full_name.setdefault(ancestor, ItemDescriptor.synthetic_folder(ancestor))
        return sorted(
            by_full_name.values(),
            key=lambda item: tree_order(item.full_name, item.is_container),
        )

    def resolve(
        self, selection: Optional[Iterable[Optional[str]]]
    ) -> tuple[list[ItemDescriptor], list[str]]:
        """Expand a selection into exportable items, ordered ancestors first.

        Returns the items to write and the names skipped because their
        configuration cannot be read.
        """
        items = {item.full_name: item for item in self._hierarchy.list_all()}
        targets: list[ItemDescriptor] = []
        skipped: list[str] = []
        for full_name in expand_selection(selection, items.keys()):
            item = items[full_name]
            if self._hierarchy.read_config_bytes(item) is None:
                skipped.append(full_name)
                continue
            targets.append(item)
        return targets, skipped

    def export(
        self, selection: Optional[Iterable[Optional[str]]], stream: BinaryIO
    ) -> tuple[list[str], list[str]]:
        selected = normalize_selection(selection)
        if not selected:
            raise NothingSelectedError()
        targets, skipped = self.resolve(selected)
        ArchiveWriter(self._hierarchy).write(targets, stream)
        exported = [item.full_name for item in targets]
        logger.info("Exported %d items (%d skipped)", len(exported), len(skipped))
        return exported, skipped

    def export_to_dir(
        self,
        selection: Optional[Iterable[Optional[str]]],
        output_dir: Path,
        now: Optional[datetime] = None,
    ) -> ExportResult:
        selected = normalize_selection(selection)
        if not selected:
            raise NothingSelectedError()
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir / export_filename(now)
        with target.open("wb") as handle:
            exported, skipped = self.export(selected, handle)
        return ExportResult(path=target, exported=exported, skipped=skipped)
