"""
Command-line interface for taskbar-lyrics.

This module implements the CLI using Click, with rich-click for coloured
help output. It is the composition root: it loads the configuration, sets
up logging and builds the HTTP client, cache service and provider registry
the commands run against.

Commands:
    taskbar-lyrics resolve --title <t> --artist <a> [--source <app>]
    taskbar-lyrics route [--source <app>]
    taskbar-lyrics clear-cache [--namespace <file>]
    taskbar-lyrics demo [--seconds <n>]

Options:
    --config <path>                     Path to config.yaml

Usage:
    # Resolve lyrics the way a QQ Music session would
    taskbar-lyrics resolve --title "晴天" --artist "周杰伦" --source QQMusic

    # Show which providers a Spotify session goes through
    taskbar-lyrics route --source Spotify

    # Wipe only the LRCLIB cache
    taskbar-lyrics clear-cache --namespace lrclib-lyrics.json

    # Drive the sync service with the looping demo session for 30 seconds
    taskbar-lyrics demo --seconds 30
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

import rich_click as click
from tqdm import tqdm

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.MAX_WIDTH = 100

from taskbar_lyrics import __version__
from taskbar_lyrics.core import (
    Config,
    ConfigError,
    TaskbarLyricsError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from taskbar_lyrics.lyrics import (
    BUILTIN_PROVIDERS,
    CacheService,
    HttpClient,
    ProviderRegistry,
    TrackInfo,
    build_route,
    create_default_registry,
)
from taskbar_lyrics.sync import LyricSyncService, MockSessionProvider

logger = get_logger(__name__)


# Seconds between two polls of the demo session
DEMO_POLL_INTERVAL = 0.25

# Seconds between two position reports of the demo player
DEMO_REPORT_INTERVAL = 1.0


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)
@click.version_option(__version__, prog_name="taskbar-lyrics")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """
    [bold green]taskbar-lyrics[/bold green] - time-synchronised lyrics resolver.

    Looks up lyrics for the playing track across QQ Music, Netease Cloud
    Music and LRCLIB, caches them on disk and follows playback line by line.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    setup_logging(config.logging.directory, config.logging.level)
    ctx.obj = config
    ctx.call_on_close(shutdown_logging)


@cli.command()
@click.option("--title", required=True, help="Track title")
@click.option("--artist", default="", help="Track artist(s)")
@click.option("--source", default="", metavar="<app>", help="Playing application, e.g. QQMusic, Spotify")
@click.pass_obj
def resolve(config: Config, title: str, artist: str, source: str) -> None:
    """Resolve lyrics for one track and print the parsed lines."""
    track = TrackInfo(
        id=f"cli:{source}:{title}:{artist}",
        title=title,
        artist=artist,
        source_app=source,
    )
    result = _run(_resolve(config, track))

    if not result.found:
        click.echo(f"No lyrics found for {track.display_name}")
        sys.exit(1)

    click.secho(f"{len(result.document)} lines from {result.source_app}", fg="green")
    for line in result.document:
        click.echo(f"[{_format_timestamp(line.timestamp)}] {line.text}")


@cli.command()
@click.option("--source", default="", metavar="<app>", help="Playing application identifier")
@click.pass_obj
def route(config: Config, source: str) -> None:
    """Print the provider route for a source application."""
    registry = _build_registry(config, HttpClient(), CacheService(config.cache.directory))

    for position, key in enumerate(build_route(source), start=1):
        registered = registry.get(key) is not None
        marker = "" if registered else "  (no provider)"
        click.echo(f"{position:2d}. {key}{marker}")


@cli.command("clear-cache")
@click.option(
    "--namespace",
    default=None,
    metavar="<file>",
    help="Cache namespace file to clear (default: all)"
)
@click.pass_obj
def clear_cache(config: Config, namespace: str | None) -> None:
    """Delete cached lyrics, from memory and disk."""
    cache_service = CacheService(config.cache.directory)

    if namespace is not None:
        names = [namespace]
    else:
        names = [provider.cache_namespace for provider in BUILTIN_PROVIDERS]

    for name in names:
        cache_service.clear(name)
        click.echo(f"Cleared {name}")


@cli.command()
@click.option(
    "--seconds",
    type=click.IntRange(min=1),
    default=25,
    show_default=True,
    help="How long to follow the demo session"
)
@click.pass_obj
def demo(config: Config, seconds: int) -> None:
    """Follow the looping demo session and print lyric frames."""
    _run(_demo(config, seconds))


def _run(coroutine):
    try:
        return asyncio.run(coroutine)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


def _build_registry(
    config: Config,
    http: HttpClient,
    cache_service: CacheService
) -> ProviderRegistry:
    try:
        return create_default_registry(config, http, cache_service)
    except TaskbarLyricsError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(1)


async def _resolve(config: Config, track: TrackInfo):
    async with HttpClient(config.network.timeout_seconds, config.network.user_agent) as http:
        registry = _build_registry(config, http, CacheService(config.cache.directory))
        return await registry.resolve_lyrics(track)


async def _demo(config: Config, seconds: int) -> None:
    session = MockSessionProvider(report_interval=DEMO_REPORT_INTERVAL)

    async with HttpClient(config.network.timeout_seconds, config.network.user_agent) as http:
        registry = _build_registry(config, http, CacheService(config.cache.directory))
        service = LyricSyncService(registry)

        polls = int(seconds / DEMO_POLL_INTERVAL)
        last_line = None
        with tqdm(total=polls, desc="Demo", unit="poll", leave=False) as progress:
            for _ in range(polls):
                snapshot = await session.get_current()
                frame = await service.get_display_frame(snapshot)
                if frame.current_line != last_line:
                    last_line = frame.current_line
                    logger.info(
                        f"[{_format_timestamp(snapshot.position)}] {frame.current_line}"
                        f"  (next: {frame.next_line or '-'}, source: {service.current_source or '-'},"
                        f" raw: {_format_timestamp(snapshot.raw_position)},"
                        f" timeline: {session.last_strategy})"
                    )

                progress.update(1)
                await asyncio.sleep(DEMO_POLL_INTERVAL)

        await service.wait_for_resolution()


def _format_timestamp(value: timedelta) -> str:
    total_ms = int(value.total_seconds() * 1000)
    minutes, remainder = divmod(total_ms, 60_000)
    return f"{minutes:02d}:{remainder / 1000:05.2f}"


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `taskbar-lyrics` from the command
    line. It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
