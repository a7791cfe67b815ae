"""
Command-line interface for playlist-archiver.

This module implements the CLI using Click, with rich-click for the
output colors.

Commands:
    playlist-archiver run               Daemon: refresh on the configured schedule
    playlist-archiver run --once        Run a single scheduled cycle, then exit
    playlist-archiver refresh           Run one refresh cycle now
    playlist-archiver status            Show per-source counts from the index
    playlist-archiver next-run          Show when the next cycle is due

Options:
    --config <path>                     config.yaml to use
                                        (default: ./config.yaml, or $PLAYLIST_ARCHIVER_CONFIG)

Exit Codes:
    0    success
    1    configuration error (or unexpected error)
    2    storage error (index, playlist files, audio tags)
    3    transport or parse error (yt-dlp, manifests)
    4    any other archiver error
    130  interrupted
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import rich_click as click
from dotenv import load_dotenv

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100

from playlist_archiver import __version__
from playlist_archiver.core.config import Config, load_config
from playlist_archiver.core.exceptions import (
    ArchiverError,
    ConfigError,
    ParseError,
    StorageError,
    TransportError,
)
from playlist_archiver.core.file_manager import FileManager
from playlist_archiver.core.index import ArchiveIndex
from playlist_archiver.core.logger import get_logger, setup_logging, shutdown_logging
from playlist_archiver.core.schedule import build_trigger, next_wake_time, resolve_timezone
from playlist_archiver.sync.context import ArchiveContext
from playlist_archiver.sync.scheduler import Scheduler

logger = get_logger(__name__)


CONFIG_ENVVAR = "PLAYLIST_ARCHIVER_CONFIG"


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar=CONFIG_ENVVAR,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.version_option(__version__, prog_name="playlist-archiver")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]) -> None:
    """
    playlist-archiver: Mirror SoundCloud and YouTube playlists locally.

    Keeps every monitored playlist downloaded, notices tracks that are
    removed, deleted or restricted, and records each change in the
    audio files' tags.

    \b
    BASIC USAGE:
        playlist-archiver run          # Refresh on schedule, forever
        playlist-archiver refresh      # Refresh once now
        playlist-archiver status       # What the index knows
    """
    load_dotenv()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option(
    "--once",
    is_flag=True,
    help="Exit after a single cycle"
)
@click.pass_context
def run(ctx: click.Context, once: bool) -> None:
    """Run the archiver daemon on the configured schedule."""

    def _daemon(context: ArchiveContext, index: ArchiveIndex) -> None:
        scheduler = Scheduler.from_context(context, index)
        scheduler.run(max_cycles=1 if once else None)

    _run_with_context(ctx.obj["config_path"], _daemon)


@cli.command()
@click.pass_context
def refresh(ctx: click.Context) -> None:
    """Run one refresh cycle now, with retries."""

    def _refresh(context: ArchiveContext, index: ArchiveIndex) -> None:
        scheduler = Scheduler.from_context(context, index)
        scheduler.run_cycle()

    _run_with_context(ctx.obj["config_path"], _refresh)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show what the index knows about each configured source."""
    try:
        config = load_config(ctx.obj["config_path"])
        file_manager = FileManager(config.paths.root)
        index = ArchiveIndex.load(file_manager.index_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)
    except StorageError as e:
        click.echo(f"Storage error: {e.message}", err=True)
        sys.exit(2)

    _print_status(config, index)


@cli.command("next-run")
@click.pass_context
def next_run(ctx: click.Context) -> None:
    """Show when the next scheduled refresh is due."""
    try:
        config = load_config(ctx.obj["config_path"])
        trigger = build_trigger(config.schedule.cron, config.schedule.timezone)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    now = datetime.now(resolve_timezone(config.schedule.timezone))
    wake = next_wake_time(trigger, now)
    description = config.schedule.cron or "every 24 hours"
    click.echo(f"{wake.isoformat()}  ({description}, {config.schedule.timezone})")


def _run_with_context(
    config_path: Optional[Path],
    body: Callable[[ArchiveContext, ArchiveIndex], None],
) -> None:
    """
    Load everything a cycle needs and run `body`, mapping errors to exit codes.

    Behavior:
        1. Load configuration
        2. Set up logging under <root>/logs
        3. Build the context and load the index
        4. Run body
        5. Always shut logging down
    """
    try:
        config = _load_configuration(config_path)

        context = ArchiveContext.from_config(config)
        context.file_manager.ensure_layout()
        setup_logging(context.file_manager.logs_dir, config.logging.level)
        logger.info(f"playlist-archiver {__version__} starting")
        logger.info(f"Archive root: {config.paths.root}")

        index = ArchiveIndex.load(context.file_manager.index_path)

        body(context, index)

        logger.info("playlist-archiver finished")

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except StorageError as e:
        click.echo(f"Storage error: {e.message}", err=True)
        logger.error(f"Storage error: {e.message}", exc_info=True)
        sys.exit(2)

    except (TransportError, ParseError) as e:
        click.echo(f"Fetch error: {e.message}", err=True)
        logger.error(f"Fetch error: {e.message}", exc_info=True)
        sys.exit(3)

    except ArchiverError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


def _load_configuration(config_path: Optional[Path]) -> Config:
    """
    Load and validate configuration.

    Raises:
        ConfigError: If configuration is invalid or missing.
    """
    return load_config(config_path)


def _print_status(config: Config, index: ArchiveIndex) -> None:
    """
    Print one block per configured source.

    Output:
        <title or url> [inactive]
          entries / removed / deleted / restricted counts
    """
    click.echo("=" * 60)
    for source in config.sources:
        playlist = index.playlists.get(source.url)
        title = f"{playlist.title} ({playlist.id})" if playlist is not None else source.url
        suffix = "" if source.active else "  [inactive]"

        click.echo(f"{title}{suffix}")
        click.echo(f"  type:        {source.kind.value}")
        if playlist is None:
            click.echo("  not fetched yet")
            continue

        counts = index.summary(source.url)
        click.echo(f"  entries:     {counts['entries']}")
        click.echo(f"  removed:     {counts['removed']}")
        click.echo(f"  deleted:     {counts['deleted']}")
        click.echo(f"  restricted:  {counts['restricted']}")
    click.echo("=" * 60)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `playlist-archiver` from the
    command line. It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
