from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from jsonschema import Draft202012Validator

from job_backup.constants import APP_NAME, DEFAULT_MAX_ARCHIVE_MB, SESSIONS_SUBDIR
from job_backup.errors import InvalidSettingsError


SETTINGS_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "jenkins_home": {"type": "string", "minLength": 1},
        "sessions_dir": {"type": "string", "minLength": 1},
        "max_archive_mb": {"type": "integer", "minimum": 1},
        "require_folder_plugin": {"type": "boolean"},
    },
}


@dataclass(frozen=True)
class Settings:
    jenkins_home: Path
    sessions_dir: Path
    max_archive_mb: int = DEFAULT_MAX_ARCHIVE_MB
    require_folder_plugin: bool = True

    @property
    def max_archive_bytes(self) -> int:
        return self.max_archive_mb * 1024 * 1024


class SettingsRepository:
    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or (Path.home() / ".config" / APP_NAME / "config.yaml")
        self._validator = Draft202012Validator(SETTINGS_SCHEMA)

    @property
    def path(self) -> Path:
        return self._path

    def load_raw(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise InvalidSettingsError(self.path, f"invalid YAML: {exc}") from exc
        errors = sorted(self._validator.iter_errors(payload), key=lambda item: list(item.path))
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.path) or "<root>"
            raise InvalidSettingsError(self.path, f"{location}: {first.message}")
        return payload

    def load(
        self,
        jenkins_home: Optional[Path] = None,
        sessions_dir: Optional[Path] = None,
    ) -> Settings:
        raw = self.load_raw()

        home = jenkins_home or _as_path(raw.get("jenkins_home")) or Path.home() / ".jenkins"
        home = home.expanduser()
        sessions = sessions_dir or _as_path(raw.get("sessions_dir"))
        if sessions is None:
            sessions = home.joinpath(*SESSIONS_SUBDIR)

        return Settings(
            jenkins_home=home,
            sessions_dir=sessions.expanduser(),
            max_archive_mb=raw.get("max_archive_mb", DEFAULT_MAX_ARCHIVE_MB),
            require_folder_plugin=raw.get("require_folder_plugin", True),
        )

    def save(self, settings: Settings) -> None:
        payload = {
            "jenkins_home": str(settings.jenkins_home),
            "sessions_dir": str(settings.sessions_dir),
            "max_archive_mb": settings.max_archive_mb,
            "require_folder_plugin": settings.require_folder_plugin,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.dump(payload, default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )


def _as_path(value: Optional[str]) -> Optional[Path]:
    if not value:
        return None
    return Path(value)
