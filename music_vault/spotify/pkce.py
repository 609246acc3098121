"""
PKCE (Proof Key for Code Exchange) helpers for Spotify OAuth.

Uses the Authorization Code with PKCE flow: no client secret, only the
public client id. The verifier is a one-shot secret that lives exactly as
long as one authorization attempt; it is never logged or persisted.

Usage:
    from music_vault.spotify.pkce import build_authorization

    session = build_authorization(client_id, SCOPES, REDIRECT_URI)
    surface.open(session.challenge_url)
    # ... redirect arrives with ?code=...
    client.exchange_code(code, session.verifier, REDIRECT_URI)
"""

import base64
import hashlib
import secrets
import string
from dataclasses import dataclass, field
from typing import Iterable
from urllib.parse import urlencode


AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
VERIFIER_LENGTH = 64

# A-Z, a-z, 0-9
VERIFIER_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class PKCESession:
    """
    One authorization attempt's secret and the URL to send the user to.

    Attributes:
        verifier: The PKCE code verifier (64 chars from VERIFIER_ALPHABET).
        challenge_url: Authorization URL embedding the S256 challenge.
    """
    verifier: str = field(repr=False)
    challenge_url: str


def random_string(length: int) -> str:
    """
    Return a random string drawn uniformly from VERIFIER_ALPHABET.

    Uses the secrets module (the OS CSPRNG); there is no fallback to a
    non-cryptographic generator.
    """
    if length < 0:
        raise ValueError("length must be non-negative")
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def sha256(data: bytes) -> bytes:
    """Return the 32-byte SHA-256 digest of data."""
    return hashlib.sha256(data).digest()


def base64url(data: bytes) -> str:
    """Base64 with '+' -> '-', '/' -> '_' and '=' padding stripped."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def code_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for a verifier."""
    return base64url(sha256(verifier.encode("ascii")))


def build_authorization(
    client_id: str,
    scopes: Iterable[str],
    redirect_uri: str,
    verifier: str | None = None
) -> PKCESession:
    """
    Create a PKCE session and the Spotify authorization URL.

    Args:
        client_id: Spotify application client id.
        scopes: OAuth scopes, joined with spaces in the URL.
        redirect_uri: Where Spotify sends the user after consent.
        verifier: Explicit verifier (tests); a fresh random_string(64)
                  is generated when None.

    Returns:
        PKCESession whose challenge_url carries, in order: response_type,
        client_id, scope, code_challenge_method, code_challenge,
        redirect_uri.

    Example:
        session = build_authorization("abc", ["user-read-currently-playing"],
                                      "obsidian://music-vault-callback")
    """
    if verifier is None:
        verifier = random_string(VERIFIER_LENGTH)

    params = {
        "response_type": "code",
        "client_id": client_id,
        "scope": " ".join(scopes),
        "code_challenge_method": "S256",
        "code_challenge": code_challenge(verifier),
        "redirect_uri": redirect_uri,
    }
    return PKCESession(
        verifier=verifier,
        challenge_url=f"{AUTHORIZE_URL}?{urlencode(params)}"
    )
