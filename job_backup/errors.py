from pathlib import Path


class JobBackupError(Exception):
    """Base user-facing application error."""

    code = "JobBackupError"


class ArchiveError(JobBackupError):
    code = "ArchiveError"


class UnsafeEntryError(ArchiveError):
    code = "UnsafeEntry"

    def __init__(self, entry_name: str) -> None:
        self.entry_name = entry_name
        super().__init__(f"Unsafe archive entry: {entry_name}")


class PathEscapeError(ArchiveError):
    code = "PathEscape"

    def __init__(self, entry_name: str) -> None:
        self.entry_name = entry_name
        super().__init__(f"Archive entry escapes destination: {entry_name}")


class InvalidArchiveError(ArchiveError):
    code = "InvalidArchive"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid archive (cannot unzip): {detail}")


class ArchiveTooLargeError(ArchiveError):
    code = "ArchiveTooLarge"

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Archive expands beyond the allowed {limit} bytes")


class ApplyError(JobBackupError):
    code = "ApplyError"


class PathConflictError(ApplyError):
    code = "PathConflict"

    def __init__(self, full_name: str) -> None:
        self.full_name = full_name
        super().__init__(f"Path segment exists but is not a folder: {full_name}")


class NotUpdatableError(ApplyError):
    code = "NotUpdatable"

    def __init__(self, full_name: str, kind_label: str) -> None:
        self.full_name = full_name
        super().__init__(
            f"Existing item is not updatable from configuration ({kind_label}): {full_name}"
        )


class ParentNotCreatableError(ApplyError):
    code = "ParentNotCreatable"

    def __init__(self, parent_name: str, detail: str | None = None) -> None:
        self.parent_name = parent_name
        message = f"Cannot create items under: {parent_name}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ContainerTypeUnavailableError(ApplyError):
    code = "ContainerTypeUnavailable"

    def __init__(self, detail: str) -> None:
        super().__init__(f"Folder type is not available: {detail}")


class MissingConfigurationError(ApplyError):
    code = "MissingConfiguration"

    def __init__(self, full_name: str) -> None:
        self.full_name = full_name
        super().__init__(f"Missing config.xml in uploaded archive: {full_name}")


class SessionError(JobBackupError):
    code = "SessionError"


class MissingSessionIdError(SessionError):
    code = "MissingSessionId"

    def __init__(self) -> None:
        super().__init__("Missing session id")


class UnknownSessionError(SessionError):
    code = "UnknownSession"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Unknown session: {session_id}")


class SessionBusyError(SessionError):
    code = "SessionBusy"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Another apply is already running for session: {session_id}")


class NothingSelectedError(SessionError):
    code = "NothingSelected"

    def __init__(self) -> None:
        super().__init__("No items selected")


class EmptyArchiveError(SessionError):
    code = "EmptyArchive"

    def __init__(self) -> None:
        super().__init__(
            "Archive has no importable jobs/folders (no config.xml entries found)"
        )


class InvalidSettingsError(JobBackupError):
    code = "InvalidSettings"

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid settings ({detail}): {path}")


def classify_error(exc: BaseException) -> str:
    code = getattr(exc, "code", None) or type(exc).__name__
    return f"{code}: {exc}"
