"""Main CLI entry point for the content-sync command.

This module provides the Typer application with three subcommands:

    content-sync sync [DIRECTORY]     # One full sync of a content directory
    content-sync watch [DIRECTORY]    # Re-sync whenever files change
    content-sync errors               # List committed records with errors

Settings are resolved in this order: command-line options, ``CONTENT_SYNC_*``
environment variables (and .env), then .content-sync/config.yaml.
"""

import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from src.cli.config import DEFAULT_CONFIG_PATH, ConfigLoader
from src.cli.models import ExitCode, SyncConfig
from src.cli.output import OutputHandler
from src.content_sync.errors import ContentSyncError, InvalidDirectoryError, MissingScopeError
from src.content_sync.git_sync import sync_from_repository
from src.content_sync.models import ParseStatus, Scope, SyncSummary
from src.content_sync.notifications import PubSub
from src.content_sync.sync_engine import SyncEngine
from src.store import SQLiteContentStore
from src.watcher import DirectoryWatcher

app = typer.Typer(
    name="content-sync",
    help="Sync a directory of content files and YAML sidecars into the content store.",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

# Module logger
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"content-sync_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _resolve_config(
    config_path: Optional[str],
    directory: Optional[str] = None,
    account_id: Optional[str] = None,
    project_id: Optional[str] = None,
    database: Optional[str] = None,
    max_workers: Optional[int] = None,
    debounce_ms: Optional[int] = None,
) -> SyncConfig:
    """Merge config file, environment and command-line options.

    An explicitly given ``--config`` must exist; the default path may be absent.
    """
    if config_path is None:
        config = ConfigLoader.load_or_default(DEFAULT_CONFIG_PATH)
    else:
        config = ConfigLoader.load(config_path)
    config = ConfigLoader.apply_env(config)

    if directory is not None:
        config.directory = directory
    if account_id is not None:
        config.account_id = account_id
    if project_id is not None:
        config.project_id = project_id
    if database is not None:
        config.database = database
    if max_workers is not None:
        config.max_workers = max_workers
    if debounce_ms is not None:
        config.debounce_ms = debounce_ms
    return config


def _scope_from(config: SyncConfig) -> Scope:
    if not config.account_id:
        raise MissingScopeError("account_id")
    if not config.project_id:
        raise MissingScopeError("project_id")
    return Scope(config.account_id, config.project_id, config.content_repo)


def _exit_for_error(output: OutputHandler, error: Exception) -> None:
    """Report ``error`` and exit with the matching ExitCode."""
    if isinstance(error, (MissingScopeError, InvalidDirectoryError)):
        output.error(str(error))
        raise typer.Exit(ExitCode.INVALID_INPUT)
    if isinstance(error, ContentSyncError):
        logger.error(f"{error.reason}: {error}")
        output.error(str(error))
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    logger.exception("Unexpected error")
    output.error(f"Unexpected error: {error}")
    raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command()
def sync(
    directory: Optional[str] = typer.Argument(
        None,
        help="Content directory (defaults to 'directory' in the config file)",
    ),
    account_id: Optional[str] = typer.Option(None, "--account", help="Account the content belongs to"),
    project_id: Optional[str] = typer.Option(None, "--project", help="Project the content belongs to"),
    database: Optional[str] = typer.Option(None, "--database", help="SQLite content database path"),
    config_path: Optional[str] = typer.Option(
        None, "--config", help=f"Config file (default: {DEFAULT_CONFIG_PATH})"
    ),
    from_repo: bool = typer.Option(
        False, "--from-repo", help="Clone 'content_repo' and sync its content/ directory"
    ),
    max_workers: Optional[int] = typer.Option(None, "--max-workers", min=1, help="Parallel processing threads"),
    logdir: Optional[str] = typer.Option(None, "--logdir", help="Directory for log files"),
    verbosity: int = typer.Option(0, "--verbosity", "-v", help="Verbosity level: 0=summary, 1=info, 2=debug"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
) -> None:
    """Replace the stored content with the current contents of DIRECTORY."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        config = _resolve_config(config_path, directory, account_id, project_id, database, max_workers)
        scope = _scope_from(config)
        store = SQLiteContentStore(config.database)
        engine = SyncEngine(store, max_workers=config.max_workers)

        if from_repo:
            with output.spinner(f"Cloning {config.content_repo}..."):
                summary = sync_from_repository(scope, engine)
        else:
            if not config.directory:
                raise InvalidDirectoryError(config.directory, "no directory given")
            summary = engine.sync_directory(scope, config.directory)
    except (ContentSyncError, OSError) as e:
        _exit_for_error(output, e)
        return

    output.print_summary(summary)
    raise typer.Exit(ExitCode.CONTENT_ERRORS if summary.errors else ExitCode.SUCCESS)


@app.command()
def watch(
    directory: Optional[str] = typer.Argument(
        None,
        help="Content directory (defaults to 'directory' in the config file)",
    ),
    account_id: Optional[str] = typer.Option(None, "--account", help="Account the content belongs to"),
    project_id: Optional[str] = typer.Option(None, "--project", help="Project the content belongs to"),
    database: Optional[str] = typer.Option(None, "--database", help="SQLite content database path"),
    config_path: Optional[str] = typer.Option(
        None, "--config", help=f"Config file (default: {DEFAULT_CONFIG_PATH})"
    ),
    debounce_ms: Optional[int] = typer.Option(
        None, "--debounce-ms", min=0, help="Quiet period after the last change before syncing"
    ),
    initial_sync: bool = typer.Option(
        True, "--initial-sync/--no-initial-sync", help="Sync once before watching"
    ),
    logdir: Optional[str] = typer.Option(None, "--logdir", help="Directory for log files"),
    verbosity: int = typer.Option(0, "--verbosity", "-v", help="Verbosity level: 0=summary, 1=info, 2=debug"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
) -> None:
    """Watch DIRECTORY and re-sync after changes settle. Stop with Ctrl+C."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        config = _resolve_config(config_path, directory, account_id, project_id, database, debounce_ms=debounce_ms)
        scope = _scope_from(config)
        store = SQLiteContentStore(config.database)

        bus = PubSub()
        bus.subscribe(scope.topic, lambda topic, payload: output.print_summary(SyncSummary(**payload)))
        engine = SyncEngine(store, notifier=bus, max_workers=config.max_workers)

        watcher = DirectoryWatcher(
            config.directory,
            scope,
            engine.sync_directory,
            debounce_ms=config.debounce_ms,
        )
        if initial_sync:
            engine.sync_directory(scope, config.directory)
        watcher.start()
    except (ContentSyncError, OSError) as e:
        _exit_for_error(output, e)
        return

    output.success(f"Watching {config.directory} (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        output.print("Stopping watcher...")
    finally:
        watcher.stop()

    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def errors(
    account_id: Optional[str] = typer.Option(None, "--account", help="Account the content belongs to"),
    project_id: Optional[str] = typer.Option(None, "--project", help="Project the content belongs to"),
    database: Optional[str] = typer.Option(None, "--database", help="SQLite content database path"),
    config_path: Optional[str] = typer.Option(
        None, "--config", help=f"Config file (default: {DEFAULT_CONFIG_PATH})"
    ),
    verbosity: int = typer.Option(0, "--verbosity", "-v", help="Verbosity level: 0=summary, 1=info, 2=debug"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
) -> None:
    """List committed content records whose processing failed."""
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        config = _resolve_config(config_path, account_id=account_id, project_id=project_id, database=database)
        scope = _scope_from(config)
        store = SQLiteContentStore(config.database)
        items = store.list_content(scope, parse_status=ParseStatus.ERROR)
    except (ContentSyncError, OSError) as e:
        _exit_for_error(output, e)
        return

    output.print_error_items(items)
    raise typer.Exit(ExitCode.CONTENT_ERRORS if items else ExitCode.SUCCESS)


@app.callback(invoke_without_command=True)
def main_callback(
    version: bool = typer.Option(False, "--version", "-V", help="Show version and exit"),
) -> None:
    if version:
        typer.echo(f"content-sync version {VERSION}")
        raise typer.Exit()


def main() -> None:
    """Console script entry point."""
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
