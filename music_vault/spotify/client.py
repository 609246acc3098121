"""
Spotify API client for music-vault.

This module talks to two Spotify hosts:

    accounts.spotify.com/api/token
        Token endpoint. Called directly with requests as a form-encoded
        POST (authorization_code and refresh_token grants, PKCE, no client
        secret). Failures return None; the caller decides what that means.

    api.spotify.com/v1
        Web API. Called through spotipy with the user's bearer token:
            me/player/currently-playing
            tracks/{id}
            artists?ids=a,b,c   (at most 50 ids per request)
            me
        A non-2xx answer raises RemoteFetchFailed carrying the status code.

Token Handling:
    The client never stores tokens. Every metadata method takes the access
    token as an argument. A 401 is NOT retried here: the caller refreshes
    the token (see music_vault.auth.tokens.TokenManager) and calls again.

Logging:
    Failures are logged with the endpoint and HTTP status. Tokens, codes
    and verifiers are never logged.

Usage:
    client = SpotifyApiClient(client_id=config.spotify.client_id)

    pair = client.exchange_code(code, verifier, REDIRECT_URI)
    song = client.fetch_currently_playing(pair.access_token)
    genres = client.fetch_genres(pair.access_token, song.artist_ids)
"""

from typing import Any, Callable, Iterable

import requests
import spotipy

from music_vault.core.config import DEFAULT_TIMEOUT
from music_vault.core.exceptions import RemoteFetchFailed
from music_vault.core.logger import get_logger
from music_vault.core.token_store import TokenPair
from music_vault.spotify.models import GenreIndex, Song, SpotifyProfile
from music_vault.utils import chunked, unique

logger = get_logger(__name__)


TOKEN_URL = "https://accounts.spotify.com/api/token"

# Spotify rejects /v1/artists requests with more ids than this
ARTIST_BATCH_SIZE = 50


def _is_ok(status: int) -> bool:
    return 200 <= status <= 299


class SpotifyApiClient:
    """
    Stateless Spotify client for token exchange and track metadata.

    Attributes:
        client_id: Spotify application client id (sent with token requests).
        timeout: HTTP timeout in seconds for every request.
        _session: requests.Session used for the token endpoint.

    Thread Safety:
        Token requests share one requests.Session. Each metadata call uses
        its own spotipy.Spotify instance bound to the given token.
    """

    def __init__(
        self,
        client_id: str,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None
    ) -> None:
        self.client_id = client_id
        self.timeout = timeout
        self._session = session or requests.Session()

    # =========================================================================
    # Token endpoint
    # =========================================================================

    def exchange_code(self, code: str, verifier: str, redirect_uri: str) -> TokenPair | None:
        """
        Exchange an authorization code for a token pair.

        Args:
            code: The ``code`` query parameter of the redirect.
            verifier: The PKCE verifier of the same attempt.
            redirect_uri: Must equal the redirect_uri of the authorize URL.

        Returns:
            TokenPair on a 2xx response with a complete body, None otherwise.
        """
        return self._request_token(
            {
                "client_id": self.client_id,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "code_verifier": verifier,
            },
            grant="authorization_code"
        )

    def refresh_token(self, refresh_token: str) -> TokenPair | None:
        """
        Obtain a new access token with a refresh token.

        Spotify may or may not rotate the refresh token; when the response
        omits it the current one is kept.

        Returns:
            TokenPair on success, None if the refresh was rejected.
        """
        return self._request_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.client_id,
            },
            grant="refresh_token",
            fallback_refresh_token=refresh_token
        )

    def _request_token(
        self,
        data: dict[str, str],
        grant: str,
        fallback_refresh_token: str | None = None
    ) -> TokenPair | None:
        try:
            response = self._session.post(
                TOKEN_URL,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Token request ({grant}) to {TOKEN_URL} failed: {type(e).__name__}")
            return None

        if not _is_ok(response.status_code):
            logger.error(f"Token request ({grant}) to {TOKEN_URL} returned HTTP {response.status_code}")
            return None

        try:
            body = response.json()
            if not isinstance(body, dict):
                raise ValueError("token response is not a JSON object")
            return TokenPair.from_token_response(body, fallback_refresh_token)
        except (ValueError, TypeError) as e:
            logger.error(f"Token request ({grant}) returned an unusable body: {e}")
            return None

    # =========================================================================
    # Web API
    # =========================================================================

    def fetch_currently_playing(self, access_token: str) -> Song | None:
        """
        Fetch the track currently playing on the user's account.

        Returns:
            Song, or None if nothing is playing, playback is paused
            (is_playing false, whatever the item), the item is not a track
            (e.g. a podcast episode), or the response could not be parsed.

        Raises:
            RemoteFetchFailed: On a non-2xx response or transport error.
        """
        endpoint = "me/player/currently-playing"
        data = self._call(endpoint, lambda api: api.current_user_playing_track(), access_token)

        if not data or not isinstance(data, dict):
            logger.debug("Nothing is playing")
            return None
        if not data.get("is_playing"):
            logger.debug("Playback is paused")
            return None

        item = data.get("item")
        if not isinstance(item, dict) or item.get("type") != "track":
            logger.debug("Current item is not a track")
            return None

        return self._parse_song(item, endpoint)

    def fetch_by_id(self, access_token: str, track_id: str) -> Song | None:
        """
        Fetch a track by its Spotify ID.

        Returns:
            Song, or None if the response could not be parsed.

        Raises:
            RemoteFetchFailed: On a non-2xx response (e.g. 404 for an
                               unknown id) or transport error.
        """
        endpoint = f"tracks/{track_id}"
        data = self._call(endpoint, lambda api: api.track(track_id), access_token)
        if not data:
            return None
        return self._parse_song(data, endpoint)

    def fetch_genres(self, access_token: str, artist_ids: Iterable[str]) -> GenreIndex:
        """
        Fetch genres for many artists.

        Ids are deduplicated (empty ids dropped) and sent in batches of at
        most ARTIST_BATCH_SIZE, one request per batch. A failed batch is
        logged and contributes no entries; the other batches still count.
        A rejected access token (HTTP 401) is raised so the caller can
        refresh it and retry.

        Returns:
            Mapping artist_id -> genres for every artist Spotify returned.

        Example:
            120 unique ids -> 3 requests (50, 50, 20)
        """
        result: GenreIndex = {}
        ids = unique(i for i in artist_ids if i)
        if not ids:
            return result

        for batch in chunked(ids, ARTIST_BATCH_SIZE):
            try:
                data = self._call("artists", lambda api: api.artists(batch), access_token)
            except RemoteFetchFailed as e:
                if e.is_auth_error:
                    raise
                logger.warning(f"Genre lookup for {len(batch)} artists failed: {e}")
                continue

            for artist in (data or {}).get("artists") or []:
                if isinstance(artist, dict) and artist.get("id") and isinstance(artist.get("genres"), list):
                    result[artist["id"]] = list(artist["genres"])

        logger.debug(f"Fetched genres for {len(result)}/{len(ids)} artists")
        return result

    def fetch_profile(self, access_token: str) -> SpotifyProfile | None:
        """
        Fetch the connected user's profile.

        Raises:
            RemoteFetchFailed: On a non-2xx response or transport error.
        """
        data = self._call("me", lambda api: api.current_user(), access_token)
        if not isinstance(data, dict):
            return None
        return SpotifyProfile.from_spotify_api(data)

    def _api(self, access_token: str) -> spotipy.Spotify:
        return spotipy.Spotify(auth=access_token, requests_timeout=self.timeout)

    def _call(
        self,
        endpoint: str,
        operation: Callable[[spotipy.Spotify], Any],
        access_token: str
    ) -> Any:
        """
        Run one Web API call, mapping failures to RemoteFetchFailed.

        Raises:
            RemoteFetchFailed: With the HTTP status for API errors, or
                               without one for transport errors.
        """
        try:
            return operation(self._api(access_token))
        except spotipy.SpotifyException as e:
            logger.error(f"Spotify request {endpoint} returned HTTP {e.http_status}")
            raise RemoteFetchFailed(
                f"Spotify request failed (HTTP {e.http_status})",
                status_code=e.http_status,
                endpoint=endpoint
            ) from e
        except requests.RequestException as e:
            logger.error(f"Spotify request {endpoint} failed: {type(e).__name__}")
            raise RemoteFetchFailed(
                f"Spotify request failed: {type(e).__name__}",
                endpoint=endpoint
            ) from e

    def _parse_song(self, item: Any, endpoint: str) -> Song | None:
        try:
            return Song.from_spotify_api(item)
        except (TypeError, AttributeError, ValueError) as e:
            logger.error(f"Failed to parse response of {endpoint}: {e}")
            return None
