import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from job_backup.archive.extractor import SafeArchiveExtractor
from job_backup.errors import JobBackupError
from job_backup.exports.service import ExportService
from job_backup.hierarchy.jenkins_home import JenkinsHomeHierarchy
from job_backup.imports.service import ImportService
from job_backup.repositories.session_store import SessionStore
from job_backup.repositories.settings import Settings, SettingsRepository
from job_backup.tui import BackupConsoleUI


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _settings_from_obj(obj: Dict[str, Any]) -> Settings:
    repository = SettingsRepository(obj.get("config_path"))
    try:
        return repository.load(
            jenkins_home=obj.get("jenkins_home"),
            sessions_dir=obj.get("sessions_dir"),
        )
    except JobBackupError as exc:
        raise click.ClickException(str(exc))


def _hierarchy_from_settings(settings: Settings) -> JenkinsHomeHierarchy:
    return JenkinsHomeHierarchy(
        settings.jenkins_home,
        require_folder_plugin=settings.require_folder_plugin,
    )


def _import_service(obj: Dict[str, Any]) -> ImportService:
    settings = _settings_from_obj(obj)
    return ImportService(
        hierarchy=_hierarchy_from_settings(settings),
        sessions=SessionStore(settings.sessions_dir),
        extractor=SafeArchiveExtractor(max_total_bytes=settings.max_archive_bytes),
    )


def _session_option():
    return click.option(
        "-s",
        "--session",
        "session_id",
        required=False,
        help="Import session id returned by 'import upload'.",
    )


def _run_selector(session_id: str, service: ImportService) -> list[str]:
    from job_backup.tui.import_selector import ImportSelectorApp

    app = ImportSelectorApp(session_id, service.preview(session_id))
    return app.run() or []


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--jenkins-home",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="JENKINS_HOME",
    help="Jenkins home directory holding the jobs tree.",
)
@click.option(
    "--sessions-dir",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="JOB_BACKUP_SESSIONS_DIR",
    help="Directory for import sessions.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Settings file (default: ~/.config/job-backup/config.yaml).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    jenkins_home: Optional[Path],
    sessions_dir: Optional[Path],
    config_path: Optional[Path],
    verbose: bool,
) -> None:
    """Back up and restore Jenkins job and folder configurations."""
    _configure_logging(verbose)
    ctx.obj = {
        "jenkins_home": jenkins_home,
        "sessions_dir": sessions_dir,
        "config_path": config_path,
        "verbose": verbose,
    }


@cli.command(help="Show the live job and folder tree.")
@click.pass_obj
def items(obj: Dict[str, Any]) -> None:
    ui = BackupConsoleUI(Console())
    settings = _settings_from_obj(obj)
    service = ExportService(_hierarchy_from_settings(settings))
    ui.render_items(service.list_items(), root=str(settings.jenkins_home))


@cli.command(help="Export selected jobs and folders (with descendants) to a ZIP.")
@click.argument("selected", nargs=-1)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=Path("."),
    show_default=True,
    help="Directory for the archive.",
)
@click.pass_obj
def export(obj: Dict[str, Any], selected: tuple[str, ...], output_dir: Path) -> None:
    ui = BackupConsoleUI(Console())
    settings = _settings_from_obj(obj)
    service = ExportService(_hierarchy_from_settings(settings))

    try:
        result = service.export_to_dir(list(selected), output_dir)
    except JobBackupError as exc:
        raise click.ClickException(str(exc))

    ui.render_export(result)


@cli.group("import", help="Upload, preview and apply a backup archive.")
def import_group() -> None:
    pass


@import_group.command("upload", help="Upload and unpack an archive into a new session.")
@click.argument(
    "archive", type=click.Path(path_type=Path, exists=True, dir_okay=False)
)
@click.option("-q", "--quiet", is_flag=True, help="Print only the session id.")
@click.pass_obj
def import_upload(obj: Dict[str, Any], archive: Path, quiet: bool) -> None:
    service = _import_service(obj)

    try:
        session_id = service.upload(archive)
        candidates = service.preview(session_id)
    except JobBackupError as exc:
        raise click.ClickException(str(exc))

    if quiet:
        click.echo(session_id)
        return
    ui = BackupConsoleUI(Console())
    ui.render_session_created(session_id, len(candidates))


@import_group.command("preview", help="Show the importable items of a session.")
@_session_option()
@click.option("--table", "as_table", is_flag=True, help="Render a flat table.")
@click.pass_obj
def import_preview(obj: Dict[str, Any], session_id: Optional[str], as_table: bool) -> None:
    ui = BackupConsoleUI(Console())
    service = _import_service(obj)

    try:
        candidates = service.preview(session_id)
    except JobBackupError as exc:
        raise click.ClickException(str(exc))

    ui.render_preview(session_id.strip(), candidates, verbose=as_table)


@import_group.command("apply", help="Apply selected items from a session.")
@_session_option()
@click.argument("selected", nargs=-1)
@click.option("--all", "select_all", is_flag=True, help="Apply every item in the archive.")
@click.option(
    "-i",
    "--interactive",
    is_flag=True,
    help="Choose items in an interactive selector.",
)
@click.pass_obj
def import_apply(
    obj: Dict[str, Any],
    session_id: Optional[str],
    selected: tuple[str, ...],
    select_all: bool,
    interactive: bool,
) -> None:
    if sum([bool(selected), select_all, interactive]) > 1:
        raise click.UsageError("Use only one of SELECTED..., --all or --interactive.")

    ui = BackupConsoleUI(Console())
    service = _import_service(obj)

    try:
        if interactive:
            selection = _run_selector(session_id or "", service)
        elif select_all:
            selection = service.all_candidate_names(session_id)
        else:
            selection = list(selected)
        result = service.apply(session_id, selection)
    except JobBackupError as exc:
        raise click.ClickException(str(exc))

    ui.render_apply_result(result, verbose=obj.get("verbose", False))

    if result.failures:
        raise click.exceptions.Exit(1)


@import_group.command("result", help="Show the last apply result of a session.")
@_session_option()
@click.pass_obj
def import_result(obj: Dict[str, Any], session_id: Optional[str]) -> None:
    ui = BackupConsoleUI(Console())
    service = _import_service(obj)

    result = service.result(session_id)
    if result is None:
        ui.render_no_result(session_id or "")
        return
    ui.render_apply_result(result, verbose=True)


@import_group.command("cleanup", help="Delete an import session.")
@_session_option()
@click.pass_obj
def import_cleanup(obj: Dict[str, Any], session_id: Optional[str]) -> None:
    ui = BackupConsoleUI(Console())
    service = _import_service(obj)

    try:
        existed = service.cleanup(session_id)
    except JobBackupError as exc:
        raise click.ClickException(str(exc))

    ui.render_cleanup(session_id.strip(), existed)


@import_group.command("prune", help="Delete import sessions older than a given age.")
@click.option(
    "--max-age-hours",
    type=click.FloatRange(min=0),
    default=24.0,
    show_default=True,
)
@click.pass_obj
def import_prune(obj: Dict[str, Any], max_age_hours: float) -> None:
    ui = BackupConsoleUI(Console())
    service = _import_service(obj)
    ui.render_pruned(service.prune(timedelta(hours=max_age_hours)))


@cli.group(help="Inspect or write the settings file.")
def settings() -> None:
    pass


@settings.command("show", help="Print the effective settings.")
@click.pass_obj
def settings_show(obj: Dict[str, Any]) -> None:
    effective = _settings_from_obj(obj)
    click.echo(f"jenkins_home: {effective.jenkins_home}")
    click.echo(f"sessions_dir: {effective.sessions_dir}")
    click.echo(f"max_archive_mb: {effective.max_archive_mb}")
    click.echo(f"require_folder_plugin: {str(effective.require_folder_plugin).lower()}")


@settings.command("init", help="Write the effective settings to the settings file.")
@click.option("--force", is_flag=True, help="Overwrite an existing settings file.")
@click.pass_obj
def settings_init(obj: Dict[str, Any], force: bool) -> None:
    repository = SettingsRepository(obj.get("config_path"))
    if repository.path.exists() and not force:
        raise click.ClickException(f"Settings file already exists: {repository.path}")
    effective = _settings_from_obj(obj)
    repository.save(effective)
    click.echo(f"Wrote {repository.path}")


def main() -> int:
    try:
        cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
