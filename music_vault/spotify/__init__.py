"""
Spotify module for music-vault.

    - pkce: PKCE verifier/challenge and the authorize URL
    - client: Token endpoint and Web API client
    - models: Song, Artist, Album, SpotifyProfile and genre enrichment
"""

from music_vault.spotify.client import SpotifyApiClient
from music_vault.spotify.models import Album, Artist, GenreIndex, Song, SpotifyProfile, enrich
from music_vault.spotify.pkce import PKCESession, build_authorization

__all__ = [
    "SpotifyApiClient",
    "Album",
    "Artist",
    "GenreIndex",
    "Song",
    "SpotifyProfile",
    "enrich",
    "PKCESession",
    "build_authorization",
]
