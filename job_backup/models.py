from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from job_backup.paths import depth_of, leaf_name, parent_of


class ItemKind(str, Enum):
    CONTAINER = "container"
    LEAF = "leaf"
    UNKNOWN = "unknown"


SYNTHETIC_FOLDER = "synthetic-folder"


@dataclass(frozen=True)
class ItemDescriptor:
    full_name: str
    kind_label: str
    is_container: bool
    parent_full_name: Optional[str] = None

    @classmethod
    def synthetic_folder(cls, full_name: str) -> "ItemDescriptor":
        return cls(
            full_name=full_name,
            kind_label="Folder",
            is_container=True,
            parent_full_name=parent_of(full_name),
        )

    @property
    def depth(self) -> int:
        return depth_of(self.full_name)

    @property
    def leaf_name(self) -> str:
        return leaf_name(self.full_name)


@dataclass(frozen=True)
class ArchiveCandidate:
    full_name: str
    exists: bool
    is_container: bool
    declared_kind: str
    config_path: Optional[Path] = None
    parent_full_name: Optional[str] = None

    @classmethod
    def synthetic_folder(cls, full_name: str, exists: bool) -> "ArchiveCandidate":
        return cls(
            full_name=full_name,
            exists=exists,
            is_container=True,
            declared_kind=SYNTHETIC_FOLDER,
            config_path=None,
            parent_full_name=parent_of(full_name),
        )

    @property
    def is_synthetic(self) -> bool:
        return self.config_path is None

    @property
    def depth(self) -> int:
        return depth_of(self.full_name)

    @property
    def leaf_name(self) -> str:
        return leaf_name(self.full_name)


@dataclass(frozen=True)
class ApplyFailure:
    full_name: str
    error: str

    def as_dict(self) -> dict[str, str]:
        return {"full_name": self.full_name, "error": self.error}


@dataclass
class ApplyResult:
    applied: list[str] = field(default_factory=list)
    failures: list[ApplyFailure] = field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def failures_count(self) -> int:
        return len(self.failures)

    def add_failure(self, full_name: str, error: str) -> None:
        self.failures.append(ApplyFailure(full_name=full_name, error=error))

    def as_dict(self) -> dict[str, Any]:
        return {
            "applied": list(self.applied),
            "failures": [failure.as_dict() for failure in self.failures],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ApplyResult":
        return cls(
            applied=list(payload.get("applied", [])),
            failures=[
                ApplyFailure(full_name=item["full_name"], error=item["error"])
                for item in payload.get("failures", [])
            ],
        )


@dataclass(frozen=True)
class Session:
    id: str
    created_at: datetime
    extracted_root: Path
    last_result: Optional[ApplyResult] = None
