import logging
import os
from pathlib import Path
from typing import Optional

from job_backup.constants import CONFIG_FILENAME
from job_backup.hierarchy.interfaces import IItemHierarchy
from job_backup.kinds import Classifier, default_classifier, sniff_root_element
from job_backup.models import ArchiveCandidate
from job_backup.paths import ancestors_of, parent_of, tree_order


logger = logging.getLogger(__name__)


def find_config_files(root: Path) -> list[tuple[str, Path]]:
    """Return ``(full_name, config_path)`` for every config file below ``root``.

    The full name is the containing directory relative to ``root`` with
    ``/`` separators. A config file directly in ``root`` has no name and is
    ignored.
    """
    if not root.is_dir():
        return []

    result: list[tuple[str, Path]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        if CONFIG_FILENAME not in filenames:
            continue
        directory = Path(dirpath)
        relative = directory.relative_to(root)
        if relative == Path("."):
            continue
        result.append((relative.as_posix(), directory / CONFIG_FILENAME))
    return result


def index_configs(root: Path) -> dict[str, Path]:
    return {full_name: path for full_name, path in find_config_files(root)}


class CandidateDiscovery:
    def __init__(
        self, hierarchy: IItemHierarchy, classifier: Optional[Classifier] = None
    ) -> None:
        self._hierarchy = hierarchy
        self._classifier = classifier or default_classifier

    def discover(self, root: Path) -> list[ArchiveCandidate]:
        by_full_name: dict[str, ArchiveCandidate] = {}
        for full_name, config_path in find_config_files(root):
            by_full_name[full_name] = self._real_candidate(full_name, config_path)

        for full_name in list(by_full_name):
            for ancestor in ancestors_of(full_name):
                if ancestor in by_full_name:
                    continue
                by_full_name[ancestor] = ArchiveCandidate.synthetic_folder(
                    ancestor, exists=self._hierarchy.exists(ancestor)
                )

        logger.debug("Discovered %d candidates in %s", len(by_full_name), root)
        return sorted(
            by_full_name.values(),
            key=lambda item: tree_order(item.full_name, item.is_container),
        )

    def _real_candidate(self, full_name: str, config_path: Path) -> ArchiveCandidate:
        root_element = sniff_root_element(config_path)
        return ArchiveCandidate(
            full_name=full_name,
            exists=self._hierarchy.exists(full_name),
            is_container=self._classifier.is_container(root_element),
            declared_kind=root_element,
            config_path=config_path,
            parent_full_name=parent_of(full_name),
        )
