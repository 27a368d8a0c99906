"""Restore items into a live hierarchy from extracted ``config.xml`` files."""

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from job_backup.constants import ARCHIVE_FAILURE_KEY
from job_backup.errors import (
    ApplyError,
    MissingConfigurationError,
    NotUpdatableError,
    ParentNotCreatableError,
    PathConflictError,
    classify_error,
)
from job_backup.hierarchy.interfaces import IItemHierarchy
from job_backup.models import ApplyResult, ItemDescriptor
from job_backup.paths import SEPARATOR
from job_backup.selection import expand_selection


logger = logging.getLogger(__name__)


class ApplyEngine:
    """Create or update selected items, ancestors first.

    Missing folders on an item's path are created on demand. Each target is
    applied independently: a failure is recorded in the result and the loop
    moves on. Nothing is rolled back.
    """

    def __init__(self, hierarchy: IItemHierarchy) -> None:
        self._hierarchy = hierarchy

    def apply(
        self,
        selection: Optional[Iterable[Optional[str]]],
        config_by_full_name: Mapping[str, Path],
    ) -> ApplyResult:
        result = ApplyResult()

        if not config_by_full_name:
            result.add_failure(
                ARCHIVE_FAILURE_KEY,
                "No config.xml entries found in the uploaded archive",
            )
            return result

        for full_name in expand_selection(selection, config_by_full_name.keys()):
            config_path = config_by_full_name.get(full_name)
            if config_path is None:
                result.add_failure(
                    full_name, classify_error(MissingConfigurationError(full_name))
                )
                continue

            try:
                self.apply_one(full_name, config_path.read_bytes())
            except Exception as exc:
                logger.warning("Failed to apply %s: %s", full_name, exc)
                result.add_failure(full_name, classify_error(exc))
                continue

            result.applied.append(full_name)
            logger.info("Applied %s", full_name)

        return result

    def apply_one(self, full_name: str, data: bytes) -> ItemDescriptor:
        segments = full_name.split(SEPARATOR)
        if not full_name or not all(segments):
            raise ValueError(f"Invalid full name: {full_name!r}")

        parent = self._ensure_container_path(segments[:-1])
        leaf = segments[-1]

        existing = self._hierarchy.get_by_full_name(full_name)
        if existing is not None:
            if not self._hierarchy.is_updatable(existing):
                raise NotUpdatableError(full_name, existing.kind_label)
            self._hierarchy.replace_config_bytes(existing, data)
            self._hierarchy.persist(existing)
            return existing

        if not self._hierarchy.can_create_in(parent):
            parent_name = parent.full_name if parent is not None else "(root)"
            raise ParentNotCreatableError(parent_name)

        created = self._hierarchy.create_from_config_bytes(parent, leaf, data)
        self._hierarchy.persist(created)
        return created

    def _ensure_container_path(
        self, segments: list[str]
    ) -> Optional[ItemDescriptor]:
        current: Optional[ItemDescriptor] = None
        for index, name in enumerate(segments):
            current_full = SEPARATOR.join(segments[: index + 1])
            existing = self._hierarchy.get_by_full_name(current_full)

            if existing is None:
                try:
                    created = self._hierarchy.create_container(current, name)
                    self._hierarchy.persist(created)
                except ApplyError as exc:
                    if isinstance(exc, ParentNotCreatableError):
                        raise
                    raise ParentNotCreatableError(current_full, str(exc)) from exc
                logger.info("Created missing folder %s", current_full)
                current = created
                continue

            if not existing.is_container:
                raise PathConflictError(current_full)
            current = existing

        return current
