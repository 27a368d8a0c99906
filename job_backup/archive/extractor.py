"""Zip extraction that refuses entries resolving outside the destination."""

import io
import logging
import os
import re
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, Union

from job_backup.constants import DEFAULT_MAX_ARCHIVE_MB
from job_backup.errors import (
    ArchiveTooLargeError,
    InvalidArchiveError,
    PathEscapeError,
    UnsafeEntryError,
)


logger = logging.getLogger(__name__)

ArchiveSource = Union[bytes, Path, BinaryIO]

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")
_SEGMENT_SPLIT = re.compile(r"[\\/]")
_COPY_CHUNK = 64 * 1024


def is_unsafe_entry_name(name: str) -> bool:
    if not name or name.startswith(("/", "\\")):
        return True
    if _DRIVE_PREFIX.match(name):
        return True
    return ".." in _SEGMENT_SPLIT.split(name)


class SafeArchiveExtractor:
    def __init__(self, max_total_bytes: int = DEFAULT_MAX_ARCHIVE_MB * 1024 * 1024) -> None:
        self.max_total_bytes = max_total_bytes

    def extract(self, archive: ArchiveSource, destination: Path) -> list[Path]:
        """Extract every entry of ``archive`` below ``destination``.

        Each entry is validated before anything is written for it. The first
        bad entry aborts the whole extraction; entries written before it are
        left in place for the caller to clean up.
        """
        destination_real = Path(destination).resolve(strict=True)
        written: list[Path] = []
        total = 0

        try:
            with zipfile.ZipFile(_open_source(archive)) as zf:
                infos = zf.infolist()
                declared = sum(info.file_size for info in infos)
                if declared > self.max_total_bytes:
                    raise ArchiveTooLargeError(self.max_total_bytes)

                for info in infos:
                    target = self._validated_target(info.filename, destination_real)
                    try:
                        if info.is_dir():
                            target.mkdir(parents=True, exist_ok=True)
                            continue
                        target.parent.mkdir(parents=True, exist_ok=True)
                        with zf.open(info) as source, target.open("wb") as sink:
                            total = self._copy(source, sink, total)
                    except OSError as exc:
                        raise InvalidArchiveError(f"cannot write {info.filename}: {exc}") from exc
                    written.append(target)
        except (zipfile.BadZipFile, zlib.error, EOFError) as exc:
            raise InvalidArchiveError(str(exc)) from exc

        logger.debug("Extracted %d files into %s", len(written), destination_real)
        return written

    @staticmethod
    def _validated_target(name: str, destination_real: Path) -> Path:
        if is_unsafe_entry_name(name):
            raise UnsafeEntryError(name)

        target = Path(os.path.normpath(destination_real / name))
        parent = target.parent.resolve()
        if parent != destination_real and not parent.is_relative_to(destination_real):
            raise PathEscapeError(name)
        return target

    def _copy(self, source: BinaryIO, sink: BinaryIO, total: int) -> int:
        while True:
            chunk = source.read(_COPY_CHUNK)
            if not chunk:
                return total
            total += len(chunk)
            if total > self.max_total_bytes:
                raise ArchiveTooLargeError(self.max_total_bytes)
            sink.write(chunk)


def _open_source(archive: ArchiveSource) -> Union[Path, BinaryIO]:
    if isinstance(archive, (bytes, bytearray)):
        return io.BytesIO(archive)
    return archive
