import sys
from pathlib import Path
from typing import Any, Optional

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()

from job_backup.errors import ContainerTypeUnavailableError  # noqa: E402
from job_backup.hierarchy.interfaces import IItemHierarchy  # noqa: E402
from job_backup.kinds import default_classifier, sniff_root_bytes, type_label  # noqa: E402
from job_backup.models import ItemDescriptor  # noqa: E402
from job_backup.paths import parent_of  # noqa: E402


FOLDER_XML = (
    b"<?xml version='1.1' encoding='UTF-8'?>\n"
    b'<com.cloudbees.hudson.plugins.folder.Folder plugin="cloudbees-folder@6.9">\n'
    b"  <description>folder</description>\n"
    b"</com.cloudbees.hudson.plugins.folder.Folder>\n"
)
FREESTYLE_XML = (
    b"<?xml version='1.1' encoding='UTF-8'?>\n"
    b"<project>\n  <description>freestyle</description>\n</project>\n"
)
PIPELINE_XML = (
    b"<?xml version='1.1' encoding='UTF-8'?>\n"
    b'<flow-definition plugin="workflow-job@1400">\n'
    b"  <description>pipeline</description>\n"
    b"</flow-definition>\n"
)


class InMemoryHierarchy(IItemHierarchy):
    def __init__(self, container_type_available: bool = True) -> None:
        self.items: dict[str, ItemDescriptor] = {}
        self.configs: dict[str, bytes] = {}
        self.persisted: list[str] = []
        self.not_updatable: set[str] = set()
        self.fail_on: dict[str, Exception] = {}
        self.container_type_available = container_type_available

    def add(self, full_name: str, data: bytes = FREESTYLE_XML) -> ItemDescriptor:
        root = sniff_root_bytes(data)
        is_container = default_classifier.is_container(root)
        item = ItemDescriptor(
            full_name=full_name,
            kind_label=type_label(root, is_container),
            is_container=is_container,
            parent_full_name=parent_of(full_name),
        )
        self.items[full_name] = item
        self.configs[full_name] = data
        return item

    def list_all(self) -> list[ItemDescriptor]:
        return [self.items[name] for name in sorted(self.items)]

    def get_by_full_name(self, full_name: str) -> Optional[ItemDescriptor]:
        return self.items.get(full_name)

    def read_config_bytes(self, item: ItemDescriptor) -> Optional[bytes]:
        return self.configs.get(item.full_name)

    def is_updatable(self, item: ItemDescriptor) -> bool:
        return item.full_name not in self.not_updatable

    def replace_config_bytes(self, item: ItemDescriptor, data: bytes) -> None:
        self._maybe_fail(item.full_name)
        self.configs[item.full_name] = data

    def can_create_in(self, parent: Optional[ItemDescriptor]) -> bool:
        return parent is None or parent.is_container

    def create_from_config_bytes(
        self, parent: Optional[ItemDescriptor], leaf_name: str, data: bytes
    ) -> ItemDescriptor:
        full_name = leaf_name if parent is None else f"{parent.full_name}/{leaf_name}"
        self._maybe_fail(full_name)
        return self.add(full_name, data)

    def create_container(
        self, parent: Optional[ItemDescriptor], name: str
    ) -> ItemDescriptor:
        if not self.container_type_available:
            raise ContainerTypeUnavailableError("folders plugin missing")
        full_name = name if parent is None else f"{parent.full_name}/{name}"
        return self.add(full_name, FOLDER_XML)

    def persist(self, item: ItemDescriptor) -> None:
        self.persisted.append(item.full_name)

    def _maybe_fail(self, full_name: str) -> None:
        error = self.fail_on.get(full_name)
        if error is not None:
            raise error


def write_item(home: Path, full_name: str, data: bytes) -> Path:
    current = home
    for segment in full_name.split("/"):
        current = current / "jobs" / segment
    current.mkdir(parents=True, exist_ok=True)
    config = current / "config.xml"
    config.write_bytes(data)
    return config


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / ".config"))
    monkeypatch.delenv("JENKINS_HOME", raising=False)
    monkeypatch.delenv("JOB_BACKUP_SESSIONS_DIR", raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def memory_hierarchy():
    return InMemoryHierarchy


@pytest.fixture
def xml_payloads() -> dict[str, bytes]:
    return {
        "folder": FOLDER_XML,
        "freestyle": FREESTYLE_XML,
        "pipeline": PIPELINE_XML,
    }


@pytest.fixture
def make_jenkins_home(tmp_path: Path):
    def _make(name: str = "jenkins", with_folder_plugin: bool = True) -> Path:
        home = tmp_path / name
        (home / "jobs").mkdir(parents=True, exist_ok=True)
        if with_folder_plugin:
            plugins = home / "plugins"
            plugins.mkdir(parents=True, exist_ok=True)
            (plugins / "cloudbees-folder.jpi").write_bytes(b"")
        return home

    return _make


@pytest.fixture
def write_job():
    return write_item


@pytest.fixture
def source_home(make_jenkins_home) -> Path:
    home = make_jenkins_home("source")
    write_item(home, "team", FOLDER_XML)
    write_item(home, "team/build", FREESTYLE_XML)
    write_item(home, "team/nested", FOLDER_XML)
    write_item(home, "team/nested/deploy", PIPELINE_XML)
    write_item(home, "standalone", PIPELINE_XML)
    return home


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(self, cli: Any, args: Any = None, **kwargs: Any):  # type: ignore[override]
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            env.setdefault("XDG_CONFIG_HOME", str(tmp_path / ".config"))
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()
