from job_backup.tui.renderers import BackupConsoleUI

__all__ = ["BackupConsoleUI"]
