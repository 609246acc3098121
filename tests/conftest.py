"""Test configuration and fixtures"""

import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from music_vault.auth.tokens import TokenManager
from music_vault.core.storage import JsonFileStore
from music_vault.core.token_store import TokenPair, TokenStore
from music_vault.notes.sync import SyncEngine
from music_vault.notes.vault import FileSystemVault
from music_vault.spotify.client import SpotifyApiClient
from music_vault.spotify.models import Song


class MemoryStore:
    """In-memory KeyValueStore"""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.saves = 0

    def load(self):
        return dict(self.data)

    def save(self, data):
        self.saves += 1
        self.data = dict(data)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def token_pair():
    return TokenPair(
        access_token="access-1",
        refresh_token="refresh-1",
        expires_in=3600,
        token_type="Bearer",
        scope="user-read-currently-playing",
    )


@pytest.fixture
def token_store(memory_store):
    return TokenStore(memory_store)


@pytest.fixture
def logged_in_store(token_store, token_pair):
    token_store.set(token_pair)
    return token_store


@pytest.fixture
def file_token_store(temp_dir):
    return TokenStore(JsonFileStore(temp_dir / "data.json"))


@pytest.fixture
def vault(temp_dir):
    root = temp_dir / "vault"
    root.mkdir()
    return FileSystemVault(root)


@pytest.fixture
def mock_client():
    """SpotifyApiClient with every network method mocked"""
    return Mock(spec=SpotifyApiClient)


@pytest.fixture
def engine(mock_client, logged_in_store, vault):
    return SyncEngine(mock_client, TokenManager(logged_in_store, mock_client), vault)


@pytest.fixture
def sample_track_data():
    """Sample /v1/tracks/{id} response"""
    return {
        "id": "track_123",
        "name": "Test Song",
        "type": "track",
        "uri": "spotify:track:track_123",
        "external_urls": {"spotify": "https://open.spotify.com/track/track_123"},
        "external_ids": {"isrc": "USABC2300001"},
        "duration_ms": 210000,
        "explicit": False,
        "popularity": 75,
        "artists": [
            {
                "id": "artist_a",
                "name": "Artist A",
                "external_urls": {"spotify": "https://open.spotify.com/artist/artist_a"},
            },
            {
                "id": "artist_b",
                "name": "Artist B",
                "external_urls": {"spotify": "https://open.spotify.com/artist/artist_b"},
            },
        ],
        "album": {
            "id": "album_123",
            "name": "Test Album",
            "release_date": "2023-01-01",
        },
    }


@pytest.fixture
def sample_song(sample_track_data):
    return Song.from_spotify_api(sample_track_data)
