import io
import zipfile
from pathlib import Path

from job_backup.__main__ import cli
from job_backup.hierarchy.jenkins_home import JenkinsHomeHierarchy


def _write_archive(path: Path, entries: dict[str, bytes]) -> Path:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    path.write_bytes(buffer.getvalue())
    return path


def _upload(cli_runner, home: Path, archive: Path) -> str:
    result = cli_runner.invoke(
        cli, ["--jenkins-home", str(home), "import", "upload", "-q", str(archive)]
    )
    assert result.exit_code == 0, result.output
    return result.stdout.strip()


def test_upload_preview_apply_result(cli_runner, make_jenkins_home, xml_payloads, tmp_path: Path) -> None:
    home = make_jenkins_home("target")
    archive = _write_archive(
        tmp_path / "backup.zip",
        {"team/config.xml": xml_payloads["folder"], "team/build/config.xml": xml_payloads["freestyle"]},
    )
    session_id = _upload(cli_runner, home, archive)
    base = ["--jenkins-home", str(home), "import"]

    preview = cli_runner.invoke(cli, [*base, "preview", "-s", session_id])
    applied = cli_runner.invoke(cli, [*base, "apply", "-s", session_id, "--all"])
    shown = cli_runner.invoke(cli, [*base, "result", "-s", session_id])

    assert preview.exit_code == 0
    assert "import preview" in preview.output
    assert "create" in preview.output
    assert applied.exit_code == 0
    assert "applied" in applied.output
    assert shown.exit_code == 0
    assert "team/build" in shown.output
    assert JenkinsHomeHierarchy(home).exists("team/build")


def test_upload_without_quiet_shows_next_steps(cli_runner, make_jenkins_home, xml_payloads, tmp_path: Path) -> None:
    home = make_jenkins_home("target")
    archive = _write_archive(tmp_path / "backup.zip", {"job/config.xml": xml_payloads["pipeline"]})

    result = cli_runner.invoke(cli, ["--jenkins-home", str(home), "import", "upload", str(archive)])

    assert result.exit_code == 0
    assert "Session:" in result.output
    assert "import preview" in result.output


def test_upload_rejects_traversal(cli_runner, make_jenkins_home, tmp_path: Path) -> None:
    home = make_jenkins_home("target")
    archive = _write_archive(tmp_path / "evil.zip", {"../evil.txt": b"boom"})

    result = cli_runner.invoke(cli, ["--jenkins-home", str(home), "import", "upload", str(archive)])

    assert result.exit_code == 1
    assert "Unsafe archive entry" in result.output
    assert not (home / "job-backup" / "evil.txt").exists()


def test_apply_failure_sets_exit_code(cli_runner, make_jenkins_home, xml_payloads, tmp_path: Path) -> None:
    home = make_jenkins_home("target", with_folder_plugin=False)
    archive = _write_archive(tmp_path / "backup.zip", {"A/job/config.xml": xml_payloads["freestyle"]})
    session_id = _upload(cli_runner, home, archive)

    result = cli_runner.invoke(
        cli, ["--jenkins-home", str(home), "import", "apply", "-s", session_id, "A/job"]
    )

    assert result.exit_code == 1
    assert "ParentNotCreatable" in result.output


def test_apply_without_selection_fails(cli_runner, make_jenkins_home, xml_payloads, tmp_path: Path) -> None:
    home = make_jenkins_home("target")
    archive = _write_archive(tmp_path / "backup.zip", {"job/config.xml": xml_payloads["pipeline"]})
    session_id = _upload(cli_runner, home, archive)

    result = cli_runner.invoke(cli, ["--jenkins-home", str(home), "import", "apply", "-s", session_id])

    assert result.exit_code == 1
    assert "No items selected" in result.output


def test_missing_and_unknown_session(cli_runner, make_jenkins_home) -> None:
    home = make_jenkins_home("target")
    base = ["--jenkins-home", str(home), "import"]

    missing = cli_runner.invoke(cli, [*base, "preview"])
    unknown = cli_runner.invoke(cli, [*base, "preview", "-s", "a" * 32])
    no_result = cli_runner.invoke(cli, [*base, "result", "-s", "a" * 32])

    assert missing.exit_code == 1
    assert "Missing session id" in missing.output
    assert unknown.exit_code == 1
    assert "Unknown session" in unknown.output
    assert no_result.exit_code == 0
    assert "No apply result recorded" in no_result.output


def test_cleanup_and_prune(cli_runner, make_jenkins_home, xml_payloads, tmp_path: Path) -> None:
    home = make_jenkins_home("target")
    archive = _write_archive(tmp_path / "backup.zip", {"job/config.xml": xml_payloads["pipeline"]})
    session_id = _upload(cli_runner, home, archive)
    base = ["--jenkins-home", str(home), "import"]

    cleaned = cli_runner.invoke(cli, [*base, "cleanup", "-s", session_id])
    again = cli_runner.invoke(cli, [*base, "cleanup", "-s", session_id])
    pruned = cli_runner.invoke(cli, [*base, "prune", "--max-age-hours", "1"])

    assert cleaned.exit_code == 0
    assert "deleted" in cleaned.output
    assert again.exit_code == 0
    assert "not found" in again.output
    assert pruned.exit_code == 0
    assert "No expired sessions." in pruned.output
    assert not (home / "job-backup" / "import" / session_id).exists()


def test_upload_conflicting_entries_is_reported(cli_runner, make_jenkins_home, tmp_path: Path) -> None:
    home = make_jenkins_home("target")
    archive = _write_archive(tmp_path / "clash.zip", {"a": b"x", "a/config.xml": b"<project/>"})

    result = cli_runner.invoke(cli, ["--jenkins-home", str(home), "import", "upload", str(archive)])

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "Invalid archive" in result.output
    assert not any((home / "job-backup" / "import").iterdir())


def test_apply_rejects_mixed_selection_modes(cli_runner, make_jenkins_home, xml_payloads, tmp_path: Path) -> None:
    home = make_jenkins_home("target")
    archive = _write_archive(tmp_path / "backup.zip", {"job/config.xml": xml_payloads["pipeline"]})
    session_id = _upload(cli_runner, home, archive)
    base = ["--jenkins-home", str(home), "import", "apply", "-s", session_id]

    mixed = cli_runner.invoke(cli, [*base, "job", "--all"])
    both_flags = cli_runner.invoke(cli, [*base, "--all", "-i"])

    assert mixed.exit_code == 2
    assert "Use only one of" in mixed.output
    assert both_flags.exit_code == 2
    assert not JenkinsHomeHierarchy(home).exists("job")
