"""Filesystem-backed import sessions.

Each session owns ``<base>/<id>/``::

    session.json   creation metadata
    upload.zip     the uploaded archive
    unzipped/      extracted archive tree
    result.json    last apply result
    apply.lock     present while an apply is running

Nothing else writes below a session directory.
"""

import logging
import os
import re
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from jsonschema import Draft202012Validator

from job_backup.constants import (
    SESSION_LOCK_FILENAME,
    SESSION_META_FILENAME,
    SESSION_RESULT_FILENAME,
    SESSION_UNZIP_DIRNAME,
    SESSION_UPLOAD_FILENAME,
)
from job_backup.errors import SessionBusyError, UnknownSessionError
from job_backup.models import ApplyResult, Session
from job_backup.utils import read_json_safe, utc_now, write_json


logger = logging.getLogger(__name__)

_SESSION_ID = re.compile(r"^[0-9a-f]{32}$")
STALE_LOCK_SECONDS = 3600

RESULT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["applied", "failures"],
    "properties": {
        "applied": {"type": "array", "items": {"type": "string"}},
        "failures": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["full_name", "error"],
                "properties": {
                    "full_name": {"type": "string"},
                    "error": {"type": "string"},
                },
            },
        },
    },
}

_result_validator = Draft202012Validator(RESULT_SCHEMA)


def is_valid_session_id(session_id: Optional[str]) -> bool:
    return bool(session_id) and _SESSION_ID.match(session_id) is not None


class SessionStore:
    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def create(self) -> str:
        session_id = uuid.uuid4().hex
        session_dir = self.session_dir(session_id)
        session_dir.mkdir(parents=True, exist_ok=False)
        self.extracted_root(session_id).mkdir()
        write_json(
            session_dir / SESSION_META_FILENAME,
            {"id": session_id, "created_at": utc_now().isoformat()},
        )
        logger.debug("Created session %s in %s", session_id, session_dir)
        return session_id

    def exists(self, session_id: Optional[str]) -> bool:
        if not is_valid_session_id(session_id):
            return False
        return self.session_dir(session_id).is_dir()

    def require(self, session_id: str) -> None:
        if not self.exists(session_id):
            raise UnknownSessionError(session_id)

    def delete(self, session_id: Optional[str]) -> None:
        """Remove a session directory, ignoring errors on individual paths."""
        if not is_valid_session_id(session_id):
            return
        session_dir = self.session_dir(session_id)
        if not session_dir.exists():
            return

        nested = sorted(session_dir.rglob("*"), key=lambda item: len(item.parts), reverse=True)
        for path in [*nested, session_dir]:
            try:
                if path.is_dir() and not path.is_symlink():
                    path.rmdir()
                else:
                    path.unlink()
            except OSError as exc:
                logger.warning("Cannot delete %s from session %s: %s", path, session_id, exc)
        logger.debug("Deleted session %s", session_id)

    def session_dir(self, session_id: str) -> Path:
        return self.base_dir / session_id

    def upload_path(self, session_id: str) -> Path:
        return self.session_dir(session_id) / SESSION_UPLOAD_FILENAME

    def extracted_root(self, session_id: str) -> Path:
        return self.session_dir(session_id) / SESSION_UNZIP_DIRNAME

    def result_path(self, session_id: str) -> Path:
        return self.session_dir(session_id) / SESSION_RESULT_FILENAME

    def created_at(self, session_id: str) -> datetime:
        payload, _ = read_json_safe(self.session_dir(session_id) / SESSION_META_FILENAME)
        if isinstance(payload, dict) and isinstance(payload.get("created_at"), str):
            try:
                parsed = datetime.fromisoformat(payload["created_at"])
            except ValueError:
                parsed = None
            if parsed is not None:
                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
                return parsed
        stamp = self.session_dir(session_id).stat().st_mtime
        return datetime.fromtimestamp(stamp, tz=timezone.utc)

    def get(self, session_id: str) -> Session:
        self.require(session_id)
        return Session(
            id=session_id,
            created_at=self.created_at(session_id),
            extracted_root=self.extracted_root(session_id),
            last_result=self.read_result(session_id),
        )

    def write_result(self, session_id: str, result: ApplyResult) -> None:
        self.require(session_id)
        write_json(self.result_path(session_id), result.as_dict())

    def read_result(self, session_id: Optional[str]) -> Optional[ApplyResult]:
        if not self.exists(session_id):
            return None
        payload, error = read_json_safe(self.result_path(session_id))
        if error is not None:
            logger.warning("Ignoring unreadable result for session %s: %s", session_id, error)
            return None
        if payload is None:
            return None
        problem = next(iter(_result_validator.iter_errors(payload)), None)
        if problem is not None:
            logger.warning("Ignoring invalid result for session %s: %s", session_id, problem.message)
            return None
        return ApplyResult.from_dict(payload)

    def list_sessions(self) -> list[str]:
        if not self.base_dir.is_dir():
            return []
        return sorted(
            child.name
            for child in self.base_dir.iterdir()
            if child.is_dir() and is_valid_session_id(child.name)
        )

    def prune(self, max_age: timedelta, now: Optional[datetime] = None) -> list[str]:
        cutoff = (now or utc_now()) - max_age
        removed: list[str] = []
        for session_id in self.list_sessions():
            if self.created_at(session_id) < cutoff:
                self.delete(session_id)
                removed.append(session_id)
        return removed

    @contextmanager
    def apply_lock(self, session_id: str) -> Iterator[None]:
        """Hold the per-session apply lock for the duration of the block.

        A lock left behind by a dead process, or older than
        ``STALE_LOCK_SECONDS``, is removed and acquisition is retried once.
        """
        self.require(session_id)
        lock_path = self.session_dir(session_id) / SESSION_LOCK_FILENAME
        self._acquire_lock(session_id, lock_path, retry=True)
        try:
            yield
        finally:
            try:
                lock_path.unlink()
            except FileNotFoundError:
                logger.debug("Apply lock already gone for session %s", session_id)

    def _acquire_lock(self, session_id: str, lock_path: Path, retry: bool) -> None:
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as exc:
            if retry and _is_stale_lock(lock_path):
                logger.warning("Removing stale apply lock for session %s", session_id)
                lock_path.unlink(missing_ok=True)
                self._acquire_lock(session_id, lock_path, retry=False)
                return
            raise SessionBusyError(session_id) from exc
        try:
            os.write(fd, str(os.getpid()).encode())
        finally:
            os.close(fd)


def _is_process_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def _is_stale_lock(lock_path: Path) -> bool:
    try:
        age = time.time() - lock_path.stat().st_mtime
        if age > STALE_LOCK_SECONDS:
            return True
        pid_text = lock_path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return True
    except OSError as exc:
        logger.debug("Cannot inspect apply lock %s: %s", lock_path, exc)
        return False
    if not pid_text.isdigit() or int(pid_text) <= 0:
        return False
    return not _is_process_running(int(pid_text))
