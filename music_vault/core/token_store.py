"""
Token storage for music-vault.

TokenStore owns the single process-wide OAuth token pair. It is created once
at startup (see music_vault.app) and passed explicitly to every component
that needs it.

Guarantees:
    - A stored pair is either fully populated or absent.
    - get() returning None means "not logged in"; a TokenStoreError means
      the store itself failed. Callers handle the two differently.
    - Writes go through the KeyValueStore as a whole-object replace, so a
      reader never observes a half-written pair.
"""

import threading
from dataclasses import asdict, dataclass
from typing import Any

from music_vault.core.exceptions import TokenStoreError
from music_vault.core.logger import get_logger
from music_vault.core.storage import KeyValueStore


logger = get_logger(__name__)


TOKEN_KEY = "token"
NOTIFIED_KEY = "has_notified_public_availability"


@dataclass(frozen=True)
class TokenPair:
    """
    OAuth token response from the Spotify token endpoint.

    Attributes:
        access_token: Bearer token for Web API calls (valid ~1 hour).
        refresh_token: Long-lived token used to obtain new access tokens.
        expires_in: Lifetime of access_token in seconds.
        token_type: Always "Bearer" for Spotify.
        scope: Space-separated granted scopes.
    """
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str
    scope: str

    @classmethod
    def from_token_response(
        cls,
        data: dict[str, Any],
        fallback_refresh_token: str | None = None
    ) -> "TokenPair":
        """
        Build a TokenPair from a token endpoint JSON body.

        Args:
            data: Parsed JSON response.
            fallback_refresh_token: Refresh token to keep when the response
                                    does not rotate it (refresh grant).

        Raises:
            ValueError: If access_token or refresh_token is missing, or
                        expires_in is not an integer.
        """
        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token") or fallback_refresh_token
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("token response has no access_token")
        if not isinstance(refresh_token, str) or not refresh_token:
            raise ValueError("token response has no refresh_token")

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(data.get("expires_in", 3600)),
            token_type=str(data.get("token_type") or "Bearer"),
            scope=str(data.get("scope") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __repr__(self) -> str:
        # Keep credentials out of tracebacks and debug logs
        return f"TokenPair(token_type={self.token_type!r}, expires_in={self.expires_in}, scope={self.scope!r})"


class TokenStore:
    """
    Thread-safe access to the persisted token pair and one-shot flags.

    Attributes:
        _store: The KeyValueStore holding the whole data object.
        _lock: Serializes load-modify-save cycles.

    Example:
        store = TokenStore(JsonFileStore(config.storage.data_file))
        pair = store.get()
        if pair is None:
            print("Run `music-vault login` first")
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = threading.Lock()

    def get(self) -> TokenPair | None:
        """
        Return the stored token pair.

        Returns:
            The TokenPair, or None if no pair has been stored.

        Raises:
            TokenStoreError: If the store cannot be read or the stored
                             record is malformed.
        """
        with self._lock:
            data = self._store.load()

        raw = data.get(TOKEN_KEY)
        if raw is None:
            return None

        try:
            return TokenPair(
                access_token=_require_str(raw, "access_token"),
                refresh_token=_require_str(raw, "refresh_token"),
                expires_in=int(raw["expires_in"]),
                token_type=_require_str(raw, "token_type"),
                scope=str(raw.get("scope", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TokenStoreError(
                "Stored token record is malformed",
                details={"original_error": type(e).__name__}
            ) from e

    def set(self, pair: TokenPair) -> None:
        """
        Persist a token pair, replacing any previous one.

        Raises:
            TokenStoreError: If the pair could not be written.
        """
        with self._lock:
            data = self._store.load()
            data[TOKEN_KEY] = pair.to_dict()
            self._store.save(data)

    def clear(self) -> None:
        """
        Forget the stored token pair (logout).

        An unreadable data object is replaced by an empty one, so logging
        out also recovers from a corrupted data file.

        Raises:
            TokenStoreError: If the data could not be written.
        """
        with self._lock:
            try:
                data = self._store.load()
            except TokenStoreError as e:
                logger.warning(f"Resetting unreadable data: {e.message}")
                self._store.save({})
                return
            if TOKEN_KEY in data:
                del data[TOKEN_KEY]
                self._store.save(data)

    def has_notified_once(self) -> bool:
        """True once the one-time connect notice has been shown."""
        with self._lock:
            data = self._store.load()
        return bool(data.get(NOTIFIED_KEY, False))

    def mark_notified(self) -> None:
        with self._lock:
            data = self._store.load()
            data[NOTIFIED_KEY] = True
            self._store.save(data)


def _require_str(raw: dict[str, Any], key: str) -> str:
    value = raw[key]
    if not isinstance(value, str) or not value:
        raise ValueError(f"{key} must be a non-empty string")
    return value
