import io
import zipfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from job_backup.errors import NothingSelectedError
from job_backup.exports.service import ExportService
from job_backup.hierarchy.jenkins_home import JenkinsHomeHierarchy


def test_list_items_adds_synthetic_ancestors(memory_hierarchy, xml_payloads) -> None:
    hierarchy = memory_hierarchy()
    hierarchy.add("orphan/job", xml_payloads["freestyle"])
    hierarchy.add("alpha", xml_payloads["pipeline"])

    items = ExportService(hierarchy).list_items()

    assert [item.full_name for item in items] == ["alpha", "orphan", "orphan/job"]
    assert items[1].is_container


def test_export_writes_selection_with_descendants(source_home: Path) -> None:
    service = ExportService(JenkinsHomeHierarchy(source_home))
    buffer = io.BytesIO()

    exported, skipped = service.export(["team/nested", "standalone"], buffer)

    assert exported == ["standalone", "team/nested", "team/nested/deploy"]
    assert skipped == []
    with zipfile.ZipFile(io.BytesIO(buffer.getvalue())) as zf:
        assert zf.namelist() == [
            "standalone/config.xml",
            "team/nested/config.xml",
            "team/nested/deploy/config.xml",
        ]


def test_export_skips_unreadable(memory_hierarchy, xml_payloads) -> None:
    hierarchy = memory_hierarchy()
    hierarchy.add("a", xml_payloads["freestyle"])
    hierarchy.add("b", xml_payloads["freestyle"])
    del hierarchy.configs["b"]

    exported, skipped = ExportService(hierarchy).export(["a", "b"], io.BytesIO())

    assert exported == ["a"]
    assert skipped == ["b"]


def test_export_nothing_selected_leaves_no_file(source_home: Path, tmp_path: Path) -> None:
    service = ExportService(JenkinsHomeHierarchy(source_home))
    output = tmp_path / "exports"

    with pytest.raises(NothingSelectedError):
        service.export_to_dir([" ", None], output)

    assert not output.exists()


def test_export_to_dir_names_file_by_timestamp(source_home: Path, tmp_path: Path) -> None:
    service = ExportService(JenkinsHomeHierarchy(source_home))
    moment = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    result = service.export_to_dir(["team"], tmp_path / "exports", now=moment)

    assert result.path.name == "job-backup-2025-01-02T03_04_05.000Z.zip"
    assert result.exported == ["team", "team/build", "team/nested", "team/nested/deploy"]
