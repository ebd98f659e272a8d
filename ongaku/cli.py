"""
Command-line interface for ongaku.

This module implements the CLI using Click, providing the commands that
manage a local mirror of YouTube Music artists and playlists.
rich-click is used for the output colors.

Commands:
    ongaku init                         Create an empty library here
    ongaku add <url> [--name NAME]      Track an artist or a playlist
    ongaku sync                         Download every missing track
    ongaku sync --verify                Check local files first, then sync
    ongaku verify                       Report tracks whose file is missing

Usage:
    # Start a library in the current directory
    ongaku init

    # Track an artist (YouTube Music channel) and a playlist
    ongaku add "https://music.youtube.com/channel/UC..."
    ongaku add "https://www.youtube.com/playlist?list=PL..." --name "Road Trip"

    # Download what is missing, with 8 parallel downloads
    ongaku sync --threads 8

Configuration:
    An optional ongaku.yaml in the current directory sets the library file,
    the output and logs directories, the download thread count, a cookie
    file and the audio format. Without it the defaults are used.

Exit Codes:
    0    success (sync warnings do not change the exit code)
    1    configuration error or unexpected error
    2    library file missing, already present, corrupt or unwritable
    3    invalid input (unsupported URL, entry already in library)
    4    YouTube lookup failed while adding an entry
    130  interrupted
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "ongaku sync": [
        {
            "name": "Sync Options",
            "options": ["--verify", "--threads", "--no-progress"],
        },
    ],
}

from ongaku import __version__
from ongaku.core import (
    Config,
    ConfigError,
    LibraryError,
    OngakuError,
    ResolverError,
    ValidationError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from ongaku.library import LibraryStore
from ongaku.sync import SyncReport, sync_library, verify_library
from ongaku.utils import ensure_directory
from ongaku.youtube import Resolver, YtDlpResolver

logger = get_logger(__name__)


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<ongaku.yaml>",
    help="Configuration file (default: ./ongaku.yaml if present)"
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show debug messages on the console"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    verbose: bool,
    version: bool
) -> None:
    """
    ongaku: Keep a local mirror of YouTube Music artists and playlists.

    Every added artist or playlist is listed again on each sync and only
    the tracks that are not yet in the library are downloaded.

    \b
    BASIC USAGE:
        ongaku init                                          # Create the library
        ongaku add "https://music.youtube.com/channel/..."   # Track an artist
        ongaku add "https://www.youtube.com/playlist?list=..."
        ongaku sync                                          # Download new tracks
    """
    # Handle --version
    if version:
        click.echo(f"ongaku {__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create an empty library in the current directory."""

    def action(config: Config) -> None:
        store = _make_store(config)
        store.init()
        ensure_directory(config.output.directory)
        logger.info(f"Initialized empty library at {store.path}")
        click.echo("Successfully initialized ongaku.")

    _run(ctx.obj, action)


@cli.command()
@click.argument("url", metavar="<url>")
@click.option(
    "--name",
    type=str,
    default=None,
    metavar="<name>",
    help="Use this name instead of the one reported by YouTube"
)
@click.pass_context
def add(ctx: click.Context, url: str, name: Optional[str]) -> None:
    """
    Add an artist or a playlist to the library.

    \b
    Supported URLs:
        https://music.youtube.com/channel/<id>      (artist)
        https://www.youtube.com/playlist?list=<id>  (playlist)
    """

    def action(config: Config) -> None:
        store = _make_store(config)
        library = store.load()

        entry = _make_resolver(config).resolve_entry(url)
        if name:
            entry.name = name

        library.add_entry(entry)
        store.save(library)

        logger.info(f"Added {entry.id} ({entry.name})")
        click.echo(f"Successfully added {entry.name} to your library.")
        click.echo("Run `ongaku sync` to download its tracks.")

    _run(ctx.obj, action)


@cli.command()
@click.option(
    "--verify", "verify_files",
    is_flag=True,
    help="Check that every recorded file still exists before syncing"
)
@click.option(
    "--threads",
    type=click.IntRange(min=1),
    default=None,
    metavar="<n>",
    help="Parallel downloads (default: config value, else one per CPU)"
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Do not display progress bars"
)
@click.pass_context
def sync(
    ctx: click.Context,
    verify_files: bool,
    threads: Optional[int],
    no_progress: bool
) -> None:
    """
    Download every track that is missing from the library.

    Entries or tracks that fail are reported and retried on the next sync.
    """

    def action(config: Config) -> None:
        report = sync_library(
            _make_store(config),
            _make_resolver(config),
            num_workers=threads or config.download.threads,
            verify=verify_files,
            show_progress=not no_progress,
        )
        _print_sync_report(report)

        if report.missing_files:
            click.echo(
                f"{report.missing_files} recorded tracks are missing on disk. "
                "They are not downloaded again."
            )
        if report.has_warnings:
            click.echo(
                f"Synced with {len(report.warnings)} warnings. "
                f"Details are in {config.output.logs_directory}."
            )
        else:
            click.echo("Successfully synced library.")

    _run(ctx.obj, action)


@cli.command()
@click.pass_context
def verify(ctx: click.Context) -> None:
    """Report tracks whose downloaded file is missing. Changes nothing."""

    def action(config: Config) -> None:
        report = verify_library(_make_store(config).load())
        if report.ok:
            click.echo(f"All {report.checked} tracks are present.")
        else:
            click.echo(f"{len(report.missing)} of {report.checked} tracks are missing.")

    _run(ctx.obj, action)


def _run(options: dict, action: Callable[[Config], None]) -> None:
    """
    Run one command with configuration, logging and error handling.

    Args:
        options: Dictionary with the group options from click context.
        action: Command body, called with the loaded configuration.

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    try:
        config = _load_configuration(options["config_path"])

        setup_logging(config.output.logs_directory, verbose=options["verbose"])
        logger.debug(f"ongaku {__version__} starting")

        action(config)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except LibraryError as e:
        click.echo(f"Library error: {e.message}", err=True)
        logger.error(f"Library error: {e.message}", exc_info=True)
        sys.exit(2)

    except ValidationError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.info(e.message)
        sys.exit(3)

    except ResolverError as e:
        click.echo(f"YouTube error: {e.message}", err=True)
        logger.error(f"YouTube error: {e.message}", exc_info=True)
        sys.exit(4)

    except OngakuError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(1)

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


def _load_configuration(config_path: Path | None) -> Config:
    """
    Load and validate configuration from ongaku.yaml.

    Raises:
        ConfigError: If configuration is invalid, or an explicit file is missing.
    """
    return load_config(config_path)


def _make_store(config: Config) -> LibraryStore:
    return LibraryStore(config.library.file)


def _make_resolver(config: Config) -> Resolver:
    return YtDlpResolver(
        output_dir=config.output.directory,
        cookie_file=config.download.cookie_file,
        audio_format=config.download.audio_format,
    )


def _print_sync_report(report: SyncReport) -> None:
    """
    Print final sync statistics.

    Output:
        Prints a summary with entry, task, download and failure counts.
    """
    logger.info("=" * 60)
    logger.info("SYNC SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Entries:           {report.entries}")
    logger.info(f"Entries failed:    {report.entries_failed}")
    logger.info(f"Missing tracks:    {report.tasks}")
    logger.info(f"Downloaded:        {report.downloaded}")
    logger.info(f"Failed:            {report.failed}")
    if report.missing_files is not None:
        logger.info(f"Missing files:     {report.missing_files}")
    if report.tasks:
        logger.info(f"Success rate:      {report.success_rate:.1f}%")
    logger.info("=" * 60)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `ongaku` from the command line.
    It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
