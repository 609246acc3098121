"""
music-vault: Mirror Spotify tracks into Markdown song notes.

Connects a Spotify account with OAuth2 PKCE (no client secret) and keeps one
Markdown note per track in an Obsidian-style vault. Each note starts with a
frontmatter block of track metadata that music-vault regenerates; the rest
of the note belongs to the user and is never modified.

Modules:
    core/       - Configuration, storage, token store, logging, exceptions
    spotify/    - PKCE helpers, Spotify API client and models
    auth/       - Interactive authorization flow and token refresh
    notes/      - Frontmatter codec, vault storage and sync engine
    utils/      - Filename and batching helpers
    app.py      - Wiring of the components for one run
    cli.py      - Command-line interface

Usage:
    Command Line:
        music-vault login
        music-vault note
        music-vault refresh

    Python API:
        from music_vault.app import create_context
        from music_vault.core import load_config

        context = create_context(load_config())
        handle = context.engine.note_for_current_track("Songs")

Configuration:
    Requires a config.yaml file in the current directory (or
    MUSIC_VAULT_DIRECTORY in the environment):

        vault:
          directory: "~/Notes"
          songs_folder: "Songs"

Dependencies:
    - spotipy: Spotify Web API client
    - requests: Token endpoint requests
    - click / rich-click: CLI framework and colors
    - rich: Progress bars
    - tqdm: Progress-safe console logging
    - pyyaml: Configuration file parsing
    - python-dotenv: .env loading
"""

__version__ = "0.1.0"
__author__ = "music-vault"
__license__ = "MIT"

# Convenience imports for common usage
from music_vault.core import (
    Config,
    ConfigError,
    MusicVaultError,
    NotAuthenticated,
    get_logger,
    load_config,
    setup_logging,
)
from music_vault.notes import SyncEngine
from music_vault.spotify import Song, SpotifyApiClient

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "MusicVaultError",
    "ConfigError",
    "NotAuthenticated",
    # Components
    "SpotifyApiClient",
    "SyncEngine",
    "Song",
]
