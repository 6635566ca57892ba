"""
Command-line interface for icloud-album.

This module implements the CLI using Click, resolving one or more iCloud
shared album links and printing what was found.
rich-click is used for the help formatting.

Usage:
    # One album, human-readable summary
    icloud-album "https://www.icloud.com/sharedalbum/#B0z5qAGN1JIFd3y"

    # Bare tokens work too; several are resolved in parallel
    icloud-album B0z5qAGN1JIFd3y C1a2b3c4d5e6f7g --threads 4

    # Machine-readable output
    icloud-album B0z5qAGN1JIFd3y --json > album.json

Configuration:
    config.yaml in the current directory is used when present; --config
    points to another file. Every setting has a default, so no file is
    required.

Exit Codes:
    0  every album was resolved
    1  configuration error or at least one album failed
    130 interrupted
"""

import json
import sys
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

from icloud_album import __version__
from icloud_album.core import (
    Config,
    ConfigError,
    ICloudAlbumError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from icloud_album.pipeline import AlbumPipeline
from icloud_album.stream.models import AlbumResult
from icloud_album.utils import extract_token, resolve_albums

logger = get_logger(__name__)


@click.command()
@click.argument("albums", nargs=-1, required=True, metavar="TOKEN_OR_URL...")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.yaml (default: ./config.yaml if present)"
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the resolved album(s) as JSON"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug logging on the console"
)
@click.option(
    "--threads",
    type=click.IntRange(min=1),
    default=4,
    show_default=True,
    help="Albums resolved in parallel"
)
@click.version_option(__version__, prog_name="icloud-album")
def cli(
    albums: tuple[str, ...],
    config_path: Optional[Path],
    as_json: bool,
    verbose: bool,
    threads: int
) -> None:
    """
    icloud-album: Resolve iCloud shared albums into photo download URLs.

    \b
    TOKEN_OR_URL is either a share link such as
        https://www.icloud.com/sharedalbum/#B0z5qAGN1JIFd3y
    or the bare token (B0z5qAGN1JIFd3y).
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    level = "DEBUG" if verbose else config.logging.level
    setup_logging(level, config.logging.directory)

    try:
        exit_code = _run(config, [extract_token(album) for album in albums], as_json, threads)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        exit_code = 130
    finally:
        shutdown_logging()

    sys.exit(exit_code)


def _run(config: Config, tokens: list[str], as_json: bool, threads: int) -> int:
    """
    Resolve every token and print the results.

    Returns:
        Process exit code.
    """
    pipeline = AlbumPipeline(config)
    try:
        if len(tokens) == 1:
            results = [(tokens[0], _resolve_one(pipeline, tokens[0]))]
        else:
            results = resolve_albums(
                tokens,
                pipeline.get_album,
                threads=threads,
                show_progress=not as_json
            )
    finally:
        pipeline.close()

    failures = 0
    resolved: list[tuple[str, AlbumResult]] = []
    for token, result in results:
        if isinstance(result, Exception):
            failures += 1
            _report_failure(token, result)
        else:
            resolved.append((token, result))

    if as_json:
        _print_json(resolved, single=len(tokens) == 1)
    else:
        for token, result in resolved:
            _print_summary(token, result)

    return 1 if failures else 0


def _resolve_one(pipeline: AlbumPipeline, token: str) -> AlbumResult | Exception:
    try:
        return pipeline.get_album(token)
    except Exception as e:
        return e


def _report_failure(token: str, error: Exception) -> None:
    if isinstance(error, ICloudAlbumError):
        click.echo(f"Error resolving {token}: {error.message}", err=True)
        if error.details:
            logger.debug(f"Details: {error.details}")
    else:
        click.echo(f"Unexpected error resolving {token}: {error}", err=True)
        logger.error("Unexpected error", exc_info=error)


def _print_json(resolved: list[tuple[str, AlbumResult]], single: bool) -> None:
    if single:
        if resolved:
            click.echo(json.dumps(resolved[0][1].to_dict(), indent=2))
        return
    click.echo(json.dumps({token: result.to_dict() for token, result in resolved}, indent=2))


def _print_summary(token: str, result: AlbumResult) -> None:
    """Print a human-readable album summary."""
    metadata = result.metadata
    click.echo("=" * 60)
    click.echo(f"Album:          {metadata.stream_name or '(untitled)'}  [{token}]")
    click.echo(f"Owner:          {metadata.owner_name or '(unknown)'}")
    click.echo(f"Photos:         {len(result.photos)}")
    click.echo(f"Items returned: {metadata.items_returned}")
    click.echo(f"Stream ctag:    {metadata.stream_ctag or '-'}")
    click.echo(f"Resolved URLs:  {result.resolved_count}")
    if result.warnings:
        click.echo(f"Warnings:       {len(result.warnings)}")
    click.echo("=" * 60)

    for index, photo in enumerate(result.photos, start=1):
        best = photo.best_derivative()
        if best is None:
            click.echo(f"{index:>4}. {photo.guid}  (no URL)")
            continue
        key, derivative = best
        size = ""
        if derivative.width is not None and derivative.height is not None:
            size = f" {derivative.width}x{derivative.height}"
        click.echo(f"{index:>4}. {photo.guid} [{key}{size}] {derivative.url}")


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `icloud-album` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
