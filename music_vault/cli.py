"""
Command-line interface for music-vault.

This module implements the CLI using Click, with rich-click for the help
and error colors.

Commands:
    music-vault login                   Connect a Spotify account (PKCE)
    music-vault logout                  Forget the stored tokens
    music-vault status                  Show whether Spotify is connected
    music-vault link                    Print a Markdown link to the playing track
    music-vault note [--folder F]       Create or update the playing track's note
    music-vault refresh [--folder F]    Refresh every song note in the folder

Global Options:
    --config <path>                     config.yaml to use
    --verbose                           Show debug messages on the console
    --version                           Show version and exit

Usage:
    music-vault login
    music-vault note --open
    music-vault refresh --folder "Music/Songs"

Exit Codes:
    0    success
    1    error (not connected, no track playing, failed refresh, ...)
    130  interrupted
"""

import sys
from pathlib import Path
from typing import Callable, Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100

from music_vault import __version__
from music_vault.app import AppContext, create_context
from music_vault.auth.flow import AuthState
from music_vault.auth.surface import TerminalSurface
from music_vault.core import (
    AuthCancelled,
    ConfigError,
    MusicVaultError,
    NoActiveTrack,
    NotAuthenticated,
    TokenStoreError,
    get_logger,
    load_config,
    normalize_folder,
    setup_logging,
    shutdown_logging,
)
from music_vault.core.progress import RefreshProgressBar

logger = get_logger(__name__)


PUBLIC_NOTICE = (
    "🔥 music-vault can now link your Spotify songs. "
    "Run `music-vault login` to connect your account and start linking!"
)

# A command returns its exit code
Command = Callable[[AppContext], int]


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show debug messages on the console"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool, version: bool) -> None:
    """
    music-vault: Keep Markdown song notes in sync with Spotify.

    \b
    GETTING STARTED:
        music-vault login          # Connect your Spotify account
        music-vault note           # Note for the song playing right now
        music-vault refresh        # Update every song note
    """
    if version:
        click.echo(f"music-vault {__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _run(ctx: click.Context, command: Command) -> None:
    """
    Load configuration, set up logging and run one command.

    Every failure is turned into a message and an exit code here, so the
    commands themselves only deal with the success path.

    Raises:
        SystemExit: With the command's exit code when it is not 0.
    """
    options = ctx.find_root().obj or {}
    exit_code = 0

    try:
        config = load_config(options.get("config_path"))
        setup_logging(config.storage.log_directory, verbose=options.get("verbose", False))

        context = create_context(config)
        _notify_once(context)

        exit_code = command(context)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        exit_code = 1

    except NotAuthenticated as e:
        click.echo(f"🎵 {e.message}", err=True)
        exit_code = 1

    except NoActiveTrack as e:
        click.echo(f"❌ {e.message}", err=True)
        exit_code = 1

    except MusicVaultError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        exit_code = 1

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        exit_code = 130

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        exit_code = 1

    finally:
        shutdown_logging()

    if exit_code:
        sys.exit(exit_code)


def _notify_once(context: AppContext) -> None:
    # Store errors are left to the command itself
    try:
        if context.token_store.has_notified_once():
            return
        click.echo(PUBLIC_NOTICE)
        context.token_store.mark_notified()
    except TokenStoreError as e:
        logger.warning(f"Skipping the one-time notice: {e.message}")


# =============================================================================
# Commands
# =============================================================================

@cli.command()
@click.pass_context
def login(ctx: click.Context) -> None:
    """Connect your Spotify account."""
    _run(ctx, _login)


def _login(context: AppContext) -> int:
    surface = TerminalSurface()
    attempt = context.auth_controller().start(surface=surface)
    surface.run(attempt)

    if attempt.state is AuthState.COMMITTED:
        click.echo("✅ Spotify connected")
        return 0

    if isinstance(attempt.error, AuthCancelled):
        click.echo("Login cancelled", err=True)
        return 1

    # Any other failure ends the attempt; the user starts a new one
    raise attempt.error or AuthCancelled("Authorization did not complete")


@cli.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Forget the stored Spotify tokens."""
    _run(ctx, _logout)


def _logout(context: AppContext) -> int:
    context.token_store.clear()
    logger.info("Stored Spotify tokens removed")
    click.echo("Spotify disconnected")
    return 0


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show whether Spotify is connected."""
    _run(ctx, _status)


def _status(context: AppContext) -> int:
    if context.token_store.get() is None:
        click.echo("Not connected. Run `music-vault login` to connect Spotify.")
        return 0

    profile = context.tokens.call(context.client.fetch_profile)
    if profile is None or not profile.display_name:
        click.echo("Connected to Spotify")
    else:
        click.echo(f"Connected to Spotify as {profile.display_name}")
    click.echo(f"Song notes folder: {_folder_label(context.config.vault.songs_folder)}")
    return 0


@cli.command()
@click.pass_context
def link(ctx: click.Context) -> None:
    """Print a Markdown link to the song playing right now."""
    _run(ctx, _link)


def _link(context: AppContext) -> int:
    click.echo(context.engine.current_track_link())
    return 0


@cli.command()
@click.option(
    "--folder",
    type=str,
    default=None,
    metavar="<folder>",
    help="Vault folder for song notes (default: vault.songs_folder)"
)
@click.option(
    "--open/--no-open", "open_note",
    default=False,
    help="Open the note after creating or updating it"
)
@click.pass_context
def note(ctx: click.Context, folder: Optional[str], open_note: bool) -> None:
    """Create or update the note of the song playing right now."""
    _run(ctx, lambda context: _note(context, folder, open_note))


def _note(context: AppContext, folder: Optional[str], open_note: bool) -> int:
    folder = _resolve_folder(context, folder)
    handle = context.engine.note_for_current_track(folder)

    if handle.created:
        click.echo(f"✅ Created song note: {handle.path}")
    elif handle.updated:
        click.echo(f"✅ Updated song note: {handle.path}")
    else:
        click.echo(f"✅ Song note is up to date: {handle.path}")

    if open_note:
        click.launch(str(context.vault.root / handle.path))
    return 0


@cli.command()
@click.option(
    "--folder",
    type=str,
    default=None,
    metavar="<folder>",
    help="Vault folder for song notes (default: vault.songs_folder)"
)
@click.pass_context
def refresh(ctx: click.Context, folder: Optional[str]) -> None:
    """Refresh the metadata of every song note."""
    _run(ctx, lambda context: _refresh(context, folder))


def _refresh(context: AppContext, folder: Optional[str]) -> int:
    folder = _resolve_folder(context, folder)
    total = len(context.engine.list_note_paths(folder))
    if total == 0:
        click.echo(f"No song notes in {_folder_label(folder)}")
        return 0

    with RefreshProgressBar(total=total) as progress:
        stats = context.engine.refresh_all(folder, progress=progress.update)

    click.echo(f"Refreshed song notes: {stats.summary}")
    if stats.failed_count:
        click.echo("See the refresh_failures log for details", err=True)
        return 1
    return 0


def _resolve_folder(context: AppContext, folder: Optional[str]) -> str:
    if folder is None:
        return context.config.vault.songs_folder
    return normalize_folder(folder)


def _folder_label(folder: str) -> str:
    return folder or "(vault root)"


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `music-vault` from the command
    line. It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
