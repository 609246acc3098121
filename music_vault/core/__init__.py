"""
Core module for music-vault.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - storage: Atomic JSON key-value file
    - token_store: Persistent OAuth token pair and one-shot flags
    - logger: Logging system with multiple outputs
    - progress: Rich progress bar for batch refreshes

Usage:
    from music_vault.core import (
        Config, load_config,
        JsonFileStore, TokenStore,
        setup_logging, get_logger,
        MusicVaultError, ConfigError
    )
"""

from music_vault.core.config import (
    Config,
    SpotifyConfig,
    StorageConfig,
    VaultConfig,
    load_config,
    normalize_folder,
)
from music_vault.core.exceptions import (
    AuthCancelled,
    AuthDenied,
    AuthError,
    AuthIncomplete,
    ConfigError,
    DocumentParseSkip,
    FileSystemFailure,
    MusicVaultError,
    NoActiveTrack,
    NotAuthenticated,
    RemoteFetchFailed,
    TokenExchangeFailed,
    TokenStoreError,
)
from music_vault.core.logger import (
    get_logger,
    log_refresh_failure,
    setup_logging,
    shutdown_logging,
)
from music_vault.core.storage import JsonFileStore, KeyValueStore
from music_vault.core.token_store import TokenPair, TokenStore

__all__ = [
    # Config
    "Config",
    "VaultConfig",
    "SpotifyConfig",
    "StorageConfig",
    "load_config",
    "normalize_folder",
    # Storage
    "KeyValueStore",
    "JsonFileStore",
    "TokenPair",
    "TokenStore",
    # Exceptions
    "MusicVaultError",
    "ConfigError",
    "TokenStoreError",
    "AuthError",
    "AuthDenied",
    "AuthIncomplete",
    "TokenExchangeFailed",
    "AuthCancelled",
    "NotAuthenticated",
    "RemoteFetchFailed",
    "NoActiveTrack",
    "DocumentParseSkip",
    "FileSystemFailure",
    # Logger
    "setup_logging",
    "get_logger",
    "log_refresh_failure",
    "shutdown_logging",
]
