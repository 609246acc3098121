"""
Exception classes for music-vault.

This module defines all custom exceptions used throughout the application.
Each exception is designed to provide clear, actionable error messages
and to distinguish between different failure modes.

Exception Hierarchy:
    MusicVaultError (base)
        ConfigError - Configuration file issues
        TokenStoreError - Persistent token/data file issues
        AuthError - Interactive authorization failures
            AuthDenied - User rejected or provider returned an error
            AuthIncomplete - Redirect carried no authorization code
            TokenExchangeFailed - Code could not be exchanged for tokens
            AuthCancelled - Attempt superseded or closed by the user
        NotAuthenticated - No usable token (login required)
        RemoteFetchFailed - Spotify metadata call failed
        NoActiveTrack - Nothing is playing
        DocumentParseSkip - A note could not be read or parsed
        FileSystemFailure - Folder or file creation/write failed
"""


class MusicVaultError(Exception):
    """
    Base exception for all music-vault errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all music-vault errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., track id, path).

    Example:
        try:
            engine.refresh_all("Songs")
        except MusicVaultError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Useful for logging and debugging. Common keys include:
                     - 'track_id': Spotify track ID involved in the error
                     - 'endpoint': API endpoint that failed
                     - 'path': Vault path involved in the error
                     Never put access tokens, refresh tokens, authorization
                     codes or PKCE verifiers in here.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(MusicVaultError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - Required fields missing (vault.directory)
        - Invalid field values (e.g., non-positive timeout)
    """
    pass


class TokenStoreError(MusicVaultError):
    """
    Raised when the persistent data file cannot be read or written.

    This is distinct from "no token stored": a missing token means the user
    has to log in, while a store error is an unexpected failure that must be
    reported as such.

    Common causes:
        - data file is corrupted (invalid JSON)
        - Stored token record is only partially populated
        - Permission denied or disk full when saving
    """
    pass


class AuthError(MusicVaultError):
    """
    Base class for failures of an interactive authorization attempt.

    An attempt that fails is over: nothing is retried automatically and
    the user has to start a new login.
    """
    pass


class AuthDenied(AuthError):
    """
    Raised when the provider redirected back with an ``error`` parameter.

    Usually this means the user pressed "Cancel" on the consent page
    (error=access_denied).

    Attributes:
        error: The raw ``error`` value from the redirect query string.
    """

    def __init__(self, error: str, details: dict | None = None) -> None:
        super().__init__(f"Authorization denied: {error}", details)
        self.error = error


class AuthIncomplete(AuthError):
    """Raised when the redirect URL carried neither a code nor an error."""
    pass


class TokenExchangeFailed(AuthError):
    """Raised when the token endpoint rejected the code or returned garbage."""
    pass


class AuthCancelled(AuthError):
    """Raised when an attempt was superseded by a new login or closed by the user."""
    pass


class NotAuthenticated(MusicVaultError):
    """
    Raised when an operation needs a token and none is usable.

    Covers both "never logged in" and "refresh token rejected". In both
    cases the user has to run the login again.
    """
    pass


class RemoteFetchFailed(MusicVaultError):
    """
    Raised when a Spotify Web API metadata call fails.

    Attributes:
        status_code: HTTP status code, or None for transport errors
                     (DNS, connection reset, timeout).
        endpoint: API path that was called (e.g. 'tracks/{id}').
        is_auth_error: True for HTTP 401. The caller is expected to refresh
                       the access token and try again.

    Example:
        raise RemoteFetchFailed(
            "Spotify request failed",
            status_code=404,
            endpoint="tracks/abc"
        )
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
        details: dict | None = None
    ) -> None:
        merged = {"status_code": status_code, "endpoint": endpoint}
        merged.update(details or {})
        super().__init__(message, merged)
        self.status_code = status_code
        self.endpoint = endpoint

    @property
    def is_auth_error(self) -> bool:
        """True when the access token was rejected (HTTP 401)."""
        return self.status_code == 401


class NoActiveTrack(MusicVaultError):
    """Raised when nothing is currently playing on the user's account."""
    pass


class DocumentParseSkip(MusicVaultError):
    """
    Raised when a listed note could not be read or parsed.

    This is a NON-CRITICAL error: the document is skipped and the batch
    continues with the next one.
    """
    pass


class FileSystemFailure(MusicVaultError):
    """
    Raised when a folder or note could not be created or written.

    Common causes:
        - Permission denied
        - Disk full
        - A file exists where a folder is expected
    """
    pass
