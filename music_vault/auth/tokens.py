"""
Access token lifecycle.

The Spotify client never retries a rejected token. TokenManager is the
caller-side piece that does: it hands out the stored access token and, when
a call comes back with HTTP 401, refreshes the pair once and repeats the
call once. A refresh the provider rejects means the user has to log in
again, so it surfaces as NotAuthenticated rather than a silent retry with a
stale token.

Usage:
    tokens = TokenManager(token_store, client)
    song = tokens.call(client.fetch_currently_playing)
"""

from typing import Callable, TypeVar

from music_vault.core.exceptions import NotAuthenticated, RemoteFetchFailed
from music_vault.core.logger import get_logger
from music_vault.core.token_store import TokenPair, TokenStore
from music_vault.spotify.client import SpotifyApiClient

logger = get_logger(__name__)

R = TypeVar("R")

LOGIN_HINT = "Connect Spotify first: run `music-vault login`"


class TokenManager:
    """
    Hands out access tokens and refreshes them on demand.

    Attributes:
        _token_store: Where the current pair lives.
        _client: Used for the refresh_token grant.
    """

    def __init__(self, token_store: TokenStore, client: SpotifyApiClient) -> None:
        self._token_store = token_store
        self._client = client

    def access_token(self) -> str:
        """
        Return the stored access token.

        Raises:
            NotAuthenticated: If no token pair is stored.
            TokenStoreError: If the store could not be read.
        """
        pair = self._token_store.get()
        if pair is None:
            raise NotAuthenticated(LOGIN_HINT)
        return pair.access_token

    def refresh(self) -> TokenPair:
        """
        Refresh the stored pair and commit the result.

        Returns:
            The new TokenPair.

        Raises:
            NotAuthenticated: If nothing is stored or Spotify rejected the
                              refresh token.
            TokenStoreError: If the new pair could not be stored.
        """
        pair = self._token_store.get()
        if pair is None:
            raise NotAuthenticated(LOGIN_HINT)

        logger.info("Access token expired, refreshing...")
        refreshed = self._client.refresh_token(pair.refresh_token)
        if refreshed is None:
            raise NotAuthenticated(
                "Your Spotify session has expired. Run `music-vault login` again."
            )

        self._token_store.set(refreshed)
        return refreshed

    def call(self, operation: Callable[[str], R]) -> R:
        """
        Run operation(access_token), refreshing once on HTTP 401.

        Args:
            operation: A client method taking the access token first,
                       e.g. client.fetch_currently_playing or
                       lambda token: client.fetch_by_id(token, track_id).

        Raises:
            NotAuthenticated: No token, or the refresh was rejected.
            RemoteFetchFailed: Any failure other than a first 401, or a
                               401 after refreshing.
        """
        try:
            return operation(self.access_token())
        except RemoteFetchFailed as e:
            if not e.is_auth_error:
                raise
        refreshed = self.refresh()
        return operation(refreshed.access_token)
