"""
Interactive authorization surfaces.

The auth flow needs somewhere to show Spotify's consent page and a way to
observe where the user ends up afterwards. That "surface" is provided by the
host; this module defines its contract and the terminal implementation used
by the CLI.

Contract (InteractiveSurface):
    open(url)            show the authorization page
    close()              tear the surface down
    subscribe(listener)  call listener(url) for every navigation; returns a
                         Subscription whose cancel() deregisters it

TerminalSurface:
    The redirect URI uses the obsidian:// scheme, which a terminal program
    cannot intercept. The terminal surface therefore opens the page in the
    system browser and asks the user to paste the URL the browser was sent
    to (the address that failed to open, or the one shown by the browser).
    Every pasted URL is dispatched as a navigation event.
"""

import threading
import webbrowser
from typing import Callable, Protocol

import click

from music_vault.core.logger import get_logger

logger = get_logger(__name__)


NavigationListener = Callable[[str], None]


class Subscription:
    """
    Handle for one registered navigation listener.

    cancel() is idempotent.
    """

    def __init__(self, on_cancel: Callable[[], None]) -> None:
        self._on_cancel = on_cancel
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
        self._on_cancel()


class InteractiveSurface(Protocol):
    """Host-provided window/browser used for the authorization round trip."""

    def open(self, url: str) -> None:
        ...

    def close(self) -> None:
        ...

    def subscribe(self, listener: NavigationListener) -> Subscription:
        ...


class ListenerRegistry:
    """
    Listener bookkeeping shared by surface implementations.

    Attributes:
        listeners: Currently registered navigation listeners.
    """

    def __init__(self) -> None:
        self.listeners: list[NavigationListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: NavigationListener) -> Subscription:
        with self._lock:
            self.listeners.append(listener)
        return Subscription(lambda: self._remove(listener))

    def _remove(self, listener: NavigationListener) -> None:
        with self._lock:
            if listener in self.listeners:
                self.listeners.remove(listener)

    def navigate(self, url: str) -> None:
        """Dispatch a navigation event to every registered listener."""
        with self._lock:
            listeners = list(self.listeners)
        for listener in listeners:
            listener(url)


class TerminalSurface(ListenerRegistry):
    """
    Authorization surface for the command line.

    Attributes:
        is_open: True between open() and close().
        launch_browser: Whether open() tries to start the system browser.
    """

    def __init__(self, launch_browser: bool = True) -> None:
        super().__init__()
        self.is_open = False
        self.launch_browser = launch_browser

    def open(self, url: str) -> None:
        self.is_open = True
        click.echo("Opening your browser to connect Spotify...")
        click.echo(f"If it doesn't open, visit:\n\n  {url}\n")
        if self.launch_browser and not webbrowser.open(url):
            logger.debug("No browser could be launched")

    def close(self) -> None:
        self.is_open = False

    def run(self, attempt, prompt: Callable[..., str] = click.prompt) -> None:
        """
        Feed pasted redirect URLs to the attempt until it settles.

        An empty answer or Ctrl-C cancels the attempt. URLs that are not
        the redirect are ignored by the attempt, so the user is asked again.

        Args:
            attempt: The AuthAttempt started on this surface.
            prompt: Input function (click.prompt); replaceable in tests.
        """
        while self.is_open and attempt.awaiting_redirect:
            try:
                url = prompt(
                    "After approving, paste the address you were redirected to "
                    "(empty to cancel)",
                    default="",
                    show_default=False
                ).strip()
            except click.Abort:
                # Ctrl-C or end of input
                attempt.cancel()
                return
            if not url:
                attempt.cancel()
                return
            self.navigate(url)
            if attempt.awaiting_redirect:
                click.echo("That is not the music-vault callback address, try again.")
