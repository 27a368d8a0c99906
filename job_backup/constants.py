from typing import Final


APP_NAME: Final[str] = "job-backup"

CONFIG_FILENAME: Final[str] = "config.xml"
JOBS_DIRNAME: Final[str] = "jobs"
PLUGINS_DIRNAME: Final[str] = "plugins"
FOLDER_PLUGIN_FILES: Final[tuple[str, ...]] = (
    "cloudbees-folder.jpi",
    "cloudbees-folder.hpi",
)

SESSIONS_SUBDIR: Final[tuple[str, ...]] = ("job-backup", "import")
SESSION_META_FILENAME: Final[str] = "session.json"
SESSION_UPLOAD_FILENAME: Final[str] = "upload.zip"
SESSION_UNZIP_DIRNAME: Final[str] = "unzipped"
SESSION_RESULT_FILENAME: Final[str] = "result.json"
SESSION_LOCK_FILENAME: Final[str] = "apply.lock"

ARCHIVE_FAILURE_KEY: Final[str] = "(archive)"
EXPORT_FILENAME_PREFIX: Final[str] = "job-backup-"

DEFAULT_MAX_ARCHIVE_MB: Final[int] = 512
SNIFF_CHUNK_SIZE: Final[int] = 4096
