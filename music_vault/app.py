"""
Component wiring for one music-vault run.

The CLI builds every component from the loaded Config once, here, and hands
the resulting AppContext to the command being run.

    JsonFileStore(storage.data_file)
        -> TokenStore
    SpotifyApiClient(spotify.client_id, spotify.timeout)
        -> TokenManager(TokenStore, client)
    FileSystemVault(vault.directory)
        -> SyncEngine(client, TokenManager, vault)
"""

from dataclasses import dataclass

from music_vault.auth.flow import AuthFlowController
from music_vault.auth.surface import TerminalSurface
from music_vault.auth.tokens import TokenManager
from music_vault.core.config import Config
from music_vault.core.storage import JsonFileStore
from music_vault.core.token_store import TokenStore
from music_vault.notes.sync import SyncEngine
from music_vault.notes.vault import FileSystemVault
from music_vault.spotify.client import SpotifyApiClient


@dataclass
class AppContext:
    """Everything a command needs, built from one Config."""
    config: Config
    token_store: TokenStore
    client: SpotifyApiClient
    tokens: TokenManager
    vault: FileSystemVault
    engine: SyncEngine

    def auth_controller(self) -> AuthFlowController:
        """Authorization controller using the terminal surface."""
        return AuthFlowController(
            client=self.client,
            token_store=self.token_store,
            surface_factory=TerminalSurface,
            client_id=self.config.spotify.client_id,
            scopes=self.config.spotify.scopes,
            redirect_uri=self.config.spotify.redirect_uri,
        )


def create_context(config: Config) -> AppContext:
    """
    Build the application components from config.

    Nothing is read from disk or the network here; the data file is only
    opened when the token store is first used.
    """
    token_store = TokenStore(JsonFileStore(config.storage.data_file))
    client = SpotifyApiClient(
        client_id=config.spotify.client_id,
        timeout=config.spotify.timeout,
    )
    tokens = TokenManager(token_store, client)
    vault = FileSystemVault(config.vault.directory)
    engine = SyncEngine(client, tokens, vault)

    return AppContext(
        config=config,
        token_store=token_store,
        client=client,
        tokens=tokens,
        vault=vault,
        engine=engine,
    )
