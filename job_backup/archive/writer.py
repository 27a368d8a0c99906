import logging
import zipfile
from datetime import datetime, timezone
from typing import BinaryIO, Iterable, Optional

from job_backup.constants import CONFIG_FILENAME, EXPORT_FILENAME_PREFIX
from job_backup.hierarchy.interfaces import IItemHierarchy
from job_backup.models import ItemDescriptor


logger = logging.getLogger(__name__)


def sanitize_entry_path(full_name: Optional[str]) -> str:
    value = (full_name or "").replace("\\", "/")
    return value.lstrip("/")


def entry_name_for(full_name: str) -> str:
    return f"{sanitize_entry_path(full_name)}/{CONFIG_FILENAME}"


def export_filename(now: Optional[datetime] = None) -> str:
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    millis = moment.microsecond // 1000
    stamp = moment.strftime("%Y-%m-%dT%H_%M_%S") + f".{millis:03d}Z"
    return f"{EXPORT_FILENAME_PREFIX}{stamp}.zip"


class ArchiveWriter:
    """Write item configurations as ``<full-name>/config.xml`` zip entries.

    Items are written in the order given; callers pass them already sorted
    and already filtered down to items with a readable configuration.
    """

    def __init__(self, hierarchy: IItemHierarchy) -> None:
        self._hierarchy = hierarchy

    def write(self, items: Iterable[ItemDescriptor], stream: BinaryIO) -> int:
        count = 0
        with zipfile.ZipFile(stream, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for item in items:
                data = self._hierarchy.read_config_bytes(item)
                if data is None:
                    raise ValueError(f"Item has no readable configuration: {item.full_name}")
                zf.writestr(entry_name_for(item.full_name), data)
                count += 1
                logger.debug("Archived %s", item.full_name)
        return count
