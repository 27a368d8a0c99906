from job_backup.repositories.session_store import SessionStore
from job_backup.repositories.settings import Settings, SettingsRepository

__all__ = ["SessionStore", "Settings", "SettingsRepository"]
