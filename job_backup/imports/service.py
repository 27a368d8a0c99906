import logging
import shutil
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Optional

from job_backup.archive.extractor import ArchiveSource, SafeArchiveExtractor
from job_backup.errors import (
    EmptyArchiveError,
    MissingSessionIdError,
    NothingSelectedError,
)
from job_backup.hierarchy.interfaces import IItemHierarchy
from job_backup.imports.apply import ApplyEngine
from job_backup.imports.discovery import CandidateDiscovery, find_config_files, index_configs
from job_backup.kinds import Classifier
from job_backup.models import ApplyResult, ArchiveCandidate
from job_backup.repositories.session_store import SessionStore
from job_backup.selection import normalize_selection


logger = logging.getLogger(__name__)


class ImportService:
    """Upload, preview and apply steps of an archive import.

    Each step is a separate call keyed by a session id, so the archive is
    uploaded and extracted once and then previewed or applied any number of
    times.
    """

    def __init__(
        self,
        hierarchy: IItemHierarchy,
        sessions: SessionStore,
        extractor: Optional[SafeArchiveExtractor] = None,
        classifier: Optional[Classifier] = None,
    ) -> None:
        self._hierarchy = hierarchy
        self._sessions = sessions
        self._extractor = extractor or SafeArchiveExtractor()
        self._discovery = CandidateDiscovery(hierarchy, classifier)
        self._engine = ApplyEngine(hierarchy)

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    def upload(self, archive: ArchiveSource) -> str:
        session_id = self._sessions.create()
        try:
            upload_path = self._sessions.upload_path(session_id)
            _store_upload(archive, upload_path)
            self._extractor.extract(upload_path, self._sessions.extracted_root(session_id))
            if not find_config_files(self._sessions.extracted_root(session_id)):
                raise EmptyArchiveError()
        except Exception as exc:
            logger.warning("Upload rejected, discarding session %s: %s", session_id, exc)
            self._sessions.delete(session_id)
            raise
        logger.info("Created import session %s", session_id)
        return session_id

    def preview(self, session_id: Optional[str]) -> list[ArchiveCandidate]:
        session_id = self._require_session(session_id)
        candidates = self._discovery.discover(self._sessions.extracted_root(session_id))
        if not candidates:
            raise EmptyArchiveError()
        return candidates

    def all_candidate_names(self, session_id: Optional[str]) -> list[str]:
        return [item.full_name for item in self.preview(session_id)]

    def apply(
        self, session_id: Optional[str], selection: Optional[Iterable[Optional[str]]]
    ) -> ApplyResult:
        session_id = self._require_session(session_id)
        selected = normalize_selection(selection)
        if not selected:
            raise NothingSelectedError()

        with self._sessions.apply_lock(session_id):
            configs = index_configs(self._sessions.extracted_root(session_id))
            result = self._engine.apply(selected, configs)
            self._sessions.write_result(session_id, result)

        logger.info(
            "Session %s: applied %d, failed %d",
            session_id,
            result.applied_count,
            result.failures_count,
        )
        return result

    def result(self, session_id: Optional[str]) -> Optional[ApplyResult]:
        if not session_id or not session_id.strip():
            return None
        return self._sessions.read_result(session_id.strip())

    def cleanup(self, session_id: Optional[str]) -> bool:
        if not session_id or not session_id.strip():
            raise MissingSessionIdError()
        existed = self._sessions.exists(session_id.strip())
        self._sessions.delete(session_id.strip())
        return existed

    def prune(self, max_age: timedelta) -> list[str]:
        return self._sessions.prune(max_age)

    def _require_session(self, session_id: Optional[str]) -> str:
        if not session_id or not session_id.strip():
            raise MissingSessionIdError()
        session_id = session_id.strip()
        self._sessions.require(session_id)
        return session_id


def _store_upload(archive: ArchiveSource, target: Path) -> None:
    if isinstance(archive, (bytes, bytearray)):
        target.write_bytes(archive)
        return
    if isinstance(archive, Path):
        shutil.copyfile(archive, target)
        return
    with target.open("wb") as handle:
        shutil.copyfileobj(archive, handle)
