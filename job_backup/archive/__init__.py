from job_backup.archive.extractor import SafeArchiveExtractor
from job_backup.archive.writer import ArchiveWriter, export_filename, sanitize_entry_path

__all__ = [
    "ArchiveWriter",
    "SafeArchiveExtractor",
    "export_filename",
    "sanitize_entry_path",
]
