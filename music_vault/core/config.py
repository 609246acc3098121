"""
Configuration management for music-vault.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - The vault directory holding the Markdown notes
    - The folder (inside the vault) where song notes live
    - Optional Spotify client settings (client id, HTTP timeout)
    - Optional storage locations (data file, log directory)

Configuration File Location:
    By default config.yaml is read from the current working directory.
    MUSIC_VAULT_CONFIG or the --config option point elsewhere.

Environment Overrides:
    A .env file is loaded with python-dotenv. The following variables take
    precedence over the file:
        MUSIC_VAULT_DIRECTORY     -> vault.directory
        MUSIC_VAULT_SONGS_FOLDER  -> vault.songs_folder
        MUSIC_VAULT_CLIENT_ID     -> spotify.client_id

Example config.yaml:
    vault:
      directory: "~/Notes"
      songs_folder: "Songs"

    spotify:
      timeout: 30

    storage:
      data_file: "~/.music-vault/data.json"
      log_directory: "~/.music-vault/logs"
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from music_vault.core.exceptions import ConfigError


# Default configuration file name (in current working directory)
CONFIG_FILENAME = "config.yaml"
CONFIG_ENV_VAR = "MUSIC_VAULT_CONFIG"

# Fixed OAuth client configuration
DEFAULT_CLIENT_ID = "6fac5b281afe437b94080bc41b71c5a7"
REDIRECT_URI = "obsidian://music-vault-callback"
SCOPES = ("user-read-currently-playing",)

DEFAULT_TIMEOUT = 30
DEFAULT_HOME = Path("~/.music-vault")


@dataclass(frozen=True)
class VaultConfig:
    """
    Vault location configuration.

    Attributes:
        directory: Absolute path to the vault root (~ expanded).
        songs_folder: Vault-relative folder for song notes, without
                      leading/trailing slashes. Empty string means the
                      vault root.
    """
    directory: Path
    songs_folder: str


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify client configuration.

    The redirect URI and scopes are fixed (see REDIRECT_URI, SCOPES); only
    the client id and the transport timeout can be changed.

    Attributes:
        client_id: Spotify application client ID. PKCE needs no secret.
        timeout: HTTP timeout in seconds for every Spotify request.
    """
    client_id: str
    timeout: int
    redirect_uri: str = REDIRECT_URI
    scopes: tuple[str, ...] = SCOPES


@dataclass(frozen=True)
class StorageConfig:
    """
    Local storage configuration.

    Attributes:
        data_file: JSON file holding the token pair and one-shot flags.
        log_directory: Directory where log files are written.
    """
    data_file: Path
    log_directory: Path


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable (frozen dataclass).

    Example:
        config = load_config()
        print(f"Notes go to: {config.vault.directory / config.vault.songs_folder}")
    """
    vault: VaultConfig
    spotify: SpotifyConfig
    storage: StorageConfig


def normalize_folder(folder: str | None) -> str:
    """
    Normalize a vault-relative folder path.

    Strips surrounding whitespace and slashes: " /Music/Songs/ " becomes
    "Music/Songs". None and "" both mean the vault root.
    """
    return (folder or "").strip().strip("/").strip()


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, uses MUSIC_VAULT_CONFIG, then
                     config.yaml in the current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file has invalid YAML syntax, is not a
                     mapping, or contains invalid values. A missing file is
                     only an error when no MUSIC_VAULT_DIRECTORY override
                     is available.

    Behavior:
        1. Load .env (python-dotenv) without overriding real env vars
        2. Locate and parse the YAML file
        3. Apply environment overrides
        4. Validate each section, applying defaults
        5. Return frozen Config
    """
    load_dotenv()

    if config_path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        config_path = Path(env_path) if env_path else Path.cwd() / CONFIG_FILENAME

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        raw_config = _read_yaml(config_path)
    elif not os.getenv("MUSIC_VAULT_DIRECTORY"):
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    for section in ("vault", "spotify", "storage"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    vault_section = dict(raw_config.get("vault") or {})
    spotify_section = dict(raw_config.get("spotify") or {})
    _apply_env_overrides(vault_section, spotify_section)

    return Config(
        vault=_parse_vault_config(vault_section),
        spotify=_parse_spotify_config(spotify_section),
        storage=_parse_storage_config(raw_config.get("storage") or {}),
    )


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file is an empty configuration
    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )
    return raw_config


def _apply_env_overrides(vault_section: dict[str, Any], spotify_section: dict[str, Any]) -> None:
    env_mappings = {
        "MUSIC_VAULT_DIRECTORY": (vault_section, "directory"),
        "MUSIC_VAULT_SONGS_FOLDER": (vault_section, "songs_folder"),
        "MUSIC_VAULT_CLIENT_ID": (spotify_section, "client_id"),
    }
    for env_var, (section, key) in env_mappings.items():
        value = os.getenv(env_var)
        if value:
            section[key] = value


def _parse_vault_config(vault_section: dict[str, Any]) -> VaultConfig:
    """
    Parse and validate the vault configuration section.

    Raises:
        ConfigError: If directory is missing or empty, or songs_folder
                     is not a string.
    """
    directory = vault_section.get("directory", "")

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'vault.directory' must be a non-empty string",
            details={"field": "vault.directory"}
        )

    songs_folder = vault_section.get("songs_folder", "")
    if songs_folder is None:
        songs_folder = ""
    if not isinstance(songs_folder, str):
        raise ConfigError(
            "'vault.songs_folder' must be a string",
            details={"field": "vault.songs_folder"}
        )

    return VaultConfig(
        directory=Path(directory.strip()).expanduser().resolve(),
        songs_folder=normalize_folder(songs_folder)
    )


def _parse_spotify_config(spotify_section: dict[str, Any]) -> SpotifyConfig:
    """
    Parse and validate the spotify configuration section.

    Applies defaults: built-in client id, 30 second timeout.
    """
    client_id = spotify_section.get("client_id") or DEFAULT_CLIENT_ID
    if not isinstance(client_id, str) or not client_id.strip():
        raise ConfigError(
            "'spotify.client_id' must be a non-empty string",
            details={"field": "spotify.client_id"}
        )

    timeout = spotify_section.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout < 1:
        raise ConfigError(
            "'spotify.timeout' must be a positive integer",
            details={"field": "spotify.timeout", "value": timeout}
        )

    return SpotifyConfig(client_id=client_id.strip(), timeout=timeout)


def _parse_storage_config(storage_section: dict[str, Any]) -> StorageConfig:
    """
    Parse the storage configuration section.

    Defaults:
        data_file: ~/.music-vault/data.json
        log_directory: ~/.music-vault/logs
    """
    paths = {}
    defaults = {
        "data_file": DEFAULT_HOME / "data.json",
        "log_directory": DEFAULT_HOME / "logs",
    }
    for key, default in defaults.items():
        raw = storage_section.get(key)
        if raw is None:
            paths[key] = default.expanduser().resolve()
            continue
        if not isinstance(raw, str) or not raw.strip():
            raise ConfigError(
                f"'storage.{key}' must be a non-empty string path or null",
                details={"field": f"storage.{key}"}
            )
        paths[key] = Path(raw.strip()).expanduser().resolve()

    return StorageConfig(
        data_file=paths["data_file"],
        log_directory=paths["log_directory"]
    )
