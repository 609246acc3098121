"""
Interactive OAuth2 PKCE authorization flow.

Each login is an AuthAttempt, a small state machine:

    IDLE -> AWAITING_REDIRECT -> EXCHANGING_CODE -> COMMITTED
                  |                     |
                  +------> FAILED <-----+

    IDLE               PKCE session built, nothing shown yet
    AWAITING_REDIRECT  consent page open; one navigation listener registered
    EXCHANGING_CODE    redirect accepted; code being exchanged for tokens
    COMMITTED          tokens stored; on_complete() called exactly once
    FAILED             denied / no code / exchange failed / store failed /
                       cancelled; on_complete() never called

Redirect Gate:
    Every navigation that does not start with the redirect URI is ignored.
    The first navigation that does is the only one honored: the state
    leaves AWAITING_REDIRECT under the attempt's lock before anything else
    happens, so later events (or events racing from another thread) are
    dropped.

Listener Lifecycle:
    Exactly one listener per attempt. It is deregistered and the surface is
    closed on every terminal state. AuthFlowController.start() cancels the
    previous in-flight attempt before starting a new one, so a stale attempt
    can never fire callbacks.

Usage:
    controller = AuthFlowController(client, token_store, TerminalSurface)
    attempt = controller.start(on_complete=lambda: print("Connected"))
"""

import threading
from enum import Enum
from typing import Callable, Iterable
from urllib.parse import parse_qs, urlsplit

from music_vault.auth.surface import InteractiveSurface, Subscription
from music_vault.core.config import DEFAULT_CLIENT_ID, REDIRECT_URI, SCOPES
from music_vault.core.exceptions import (
    AuthCancelled,
    AuthDenied,
    AuthIncomplete,
    MusicVaultError,
    TokenExchangeFailed,
    TokenStoreError,
)
from music_vault.core.logger import get_logger
from music_vault.core.token_store import TokenStore
from music_vault.spotify.client import SpotifyApiClient
from music_vault.spotify.pkce import PKCESession, build_authorization

logger = get_logger(__name__)


class AuthState(Enum):
    """States of one authorization attempt."""
    IDLE = "idle"
    AWAITING_REDIRECT = "awaiting_redirect"
    EXCHANGING_CODE = "exchanging_code"
    COMMITTED = "committed"
    FAILED = "failed"


_PENDING_STATES = (AuthState.IDLE, AuthState.AWAITING_REDIRECT, AuthState.EXCHANGING_CODE)


class AuthAttempt:
    """
    One in-flight authorization round trip.

    Attributes:
        state: Current AuthState.
        error: The failure once state is FAILED, otherwise None.
    """

    def __init__(
        self,
        session: PKCESession,
        surface: InteractiveSurface,
        client: SpotifyApiClient,
        token_store: TokenStore,
        redirect_uri: str,
        on_complete: Callable[[], None] | None = None,
        on_failure: Callable[[MusicVaultError], None] | None = None
    ) -> None:
        self._session: PKCESession | None = session
        self._surface = surface
        self._client = client
        self._token_store = token_store
        self._redirect_uri = redirect_uri
        self._on_complete = on_complete
        self._on_failure = on_failure

        self._lock = threading.Lock()
        self._state = AuthState.IDLE
        self._subscription: Subscription | None = None
        self.error: MusicVaultError | None = None

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state in _PENDING_STATES

    @property
    def awaiting_redirect(self) -> bool:
        return self._state is AuthState.AWAITING_REDIRECT

    def begin(self) -> None:
        """
        Register the navigation listener and show the consent page.

        Raises:
            RuntimeError: If the attempt was already started.
        """
        with self._lock:
            if self._state is not AuthState.IDLE or self._session is None:
                raise RuntimeError("authorization attempt already started")
            self._subscription = self._surface.subscribe(self.handle_navigation)
            self._state = AuthState.AWAITING_REDIRECT
            url = self._session.challenge_url

        logger.debug("Opening Spotify authorization page")
        self._surface.open(url)

    def handle_navigation(self, url: str) -> None:
        """
        Listener for the surface's navigation events.

        Args:
            url: Address the surface navigated to.
        """
        with self._lock:
            if self._state is not AuthState.AWAITING_REDIRECT:
                return
            if not url.startswith(self._redirect_uri):
                logger.debug("Ignoring navigation outside the redirect URI")
                return
            self._state = AuthState.EXCHANGING_CODE
            verifier = self._session.verifier if self._session else ""

        params = parse_qs(urlsplit(url).query)
        error = (params.get("error") or [""])[0]
        code = (params.get("code") or [""])[0]

        if error:
            self._fail(AuthDenied(error))
            return

        if not code:
            self._fail(AuthIncomplete("The redirect did not contain an authorization code"))
            return

        pair = self._client.exchange_code(code, verifier, self._redirect_uri)
        if pair is None:
            self._fail(TokenExchangeFailed("Could not exchange the authorization code for tokens"))
            return

        # Storing and leaving EXCHANGING_CODE are atomic with respect to cancel()
        with self._lock:
            if self._state is not AuthState.EXCHANGING_CODE:
                logger.info("Authorization attempt was cancelled, discarding its tokens")
                return
            try:
                self._token_store.set(pair)
            except TokenStoreError as e:
                self._state = AuthState.FAILED
                self.error = e
            else:
                self._state = AuthState.COMMITTED

        self._settle()

    def cancel(self) -> None:
        """
        Abandon the attempt without calling any callback.

        Used when a newer attempt supersedes this one or the user closes
        the surface. Does nothing once the attempt has settled.
        """
        with self._lock:
            if not self.is_pending:
                return
            self._state = AuthState.FAILED
            self.error = AuthCancelled("Authorization was cancelled")
        self._teardown()
        logger.debug("Authorization attempt cancelled")

    def _fail(self, error: MusicVaultError) -> None:
        with self._lock:
            if self._state is not AuthState.EXCHANGING_CODE:
                return
            self._state = AuthState.FAILED
            self.error = error
        self._settle()

    def _settle(self) -> None:
        """Tear down and run the callback matching the terminal state."""
        self._teardown()

        if self._state is AuthState.COMMITTED:
            logger.info("Spotify account connected")
            if self._on_complete is not None:
                self._on_complete()
        elif self.error is not None:
            logger.error(f"Error encountered during auth flow: {self.error}")
            if self._on_failure is not None:
                self._on_failure(self.error)

    def _teardown(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        self._session = None
        self._surface.close()


class AuthFlowController:
    """
    Starts authorization attempts and keeps at most one in flight.

    Attributes:
        current: The most recently started attempt, or None.

    Example:
        controller = AuthFlowController(client, token_store, TerminalSurface)
        attempt = controller.start(on_failure=lambda e: print(e))
    """

    def __init__(
        self,
        client: SpotifyApiClient,
        token_store: TokenStore,
        surface_factory: Callable[[], InteractiveSurface],
        client_id: str = DEFAULT_CLIENT_ID,
        scopes: Iterable[str] = SCOPES,
        redirect_uri: str = REDIRECT_URI
    ) -> None:
        self._client = client
        self._token_store = token_store
        self._surface_factory = surface_factory
        self._client_id = client_id
        self._scopes = tuple(scopes)
        self._redirect_uri = redirect_uri
        self._lock = threading.Lock()
        self.current: AuthAttempt | None = None

    def start(
        self,
        on_complete: Callable[[], None] | None = None,
        on_failure: Callable[[MusicVaultError], None] | None = None,
        surface: InteractiveSurface | None = None
    ) -> AuthAttempt:
        """
        Begin a new authorization attempt.

        Any attempt still in flight is cancelled first (listener removed,
        surface closed, no callbacks).

        Args:
            on_complete: Called once after the tokens are stored.
            on_failure: Called with the error if the attempt fails.
            surface: Surface to use; a new one from surface_factory if None.

        Returns:
            The started AuthAttempt, in AWAITING_REDIRECT.
        """
        session = build_authorization(self._client_id, self._scopes, self._redirect_uri)
        attempt = AuthAttempt(
            session=session,
            surface=surface or self._surface_factory(),
            client=self._client,
            token_store=self._token_store,
            redirect_uri=self._redirect_uri,
            on_complete=on_complete,
            on_failure=on_failure,
        )

        with self._lock:
            previous, self.current = self.current, attempt
        if previous is not None:
            previous.cancel()

        attempt.begin()
        return attempt

    def cancel(self) -> None:
        """Cancel the current attempt, if any."""
        with self._lock:
            attempt = self.current
        if attempt is not None:
            attempt.cancel()
