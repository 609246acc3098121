"""
Authorization module for music-vault.

    - flow: PKCE authorization attempts and their controller
    - surface: Where the consent page is shown (terminal implementation)
    - tokens: Access token hand-out with refresh on 401
"""

from music_vault.auth.flow import AuthAttempt, AuthFlowController, AuthState
from music_vault.auth.surface import InteractiveSurface, Subscription, TerminalSurface
from music_vault.auth.tokens import TokenManager

__all__ = [
    "AuthAttempt",
    "AuthFlowController",
    "AuthState",
    "InteractiveSurface",
    "Subscription",
    "TerminalSurface",
    "TokenManager",
]
