"""Test the Spotify API client"""

from unittest.mock import Mock, patch

import pytest
import requests
import spotipy

from music_vault.core.exceptions import RemoteFetchFailed
from music_vault.core.token_store import TokenPair
from music_vault.spotify.client import TOKEN_URL, SpotifyApiClient


REDIRECT = "obsidian://music-vault-callback"

TOKEN_BODY = {
    "access_token": "A",
    "refresh_token": "R",
    "expires_in": 3600,
    "token_type": "Bearer",
    "scope": "user-read-currently-playing",
}


def _response(status_code, body=None):
    response = Mock()
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return SpotifyApiClient(client_id="client-id", timeout=5, session=session)


class TestTokenEndpoint:
    """Test code exchange and refresh"""

    def test_exchange_code_posts_form(self, client, session):
        session.post.return_value = _response(200, TOKEN_BODY)

        pair = client.exchange_code("XYZ", "V", REDIRECT)

        assert pair == TokenPair("A", "R", 3600, "Bearer", "user-read-currently-playing")
        args, kwargs = session.post.call_args
        assert args[0] == TOKEN_URL
        assert kwargs["data"] == {
            "client_id": "client-id",
            "grant_type": "authorization_code",
            "code": "XYZ",
            "redirect_uri": REDIRECT,
            "code_verifier": "V",
        }
        assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert kwargs["timeout"] == 5

    def test_exchange_non_2xx_returns_none(self, client, session):
        session.post.return_value = _response(400, {"error": "invalid_grant"})
        assert client.exchange_code("XYZ", "V", REDIRECT) is None

    def test_exchange_transport_error_returns_none(self, client, session):
        session.post.side_effect = requests.ConnectionError("boom")
        assert client.exchange_code("XYZ", "V", REDIRECT) is None

    def test_exchange_unparsable_body_returns_none(self, client, session):
        session.post.return_value = _response(200, ValueError("not json"))
        assert client.exchange_code("XYZ", "V", REDIRECT) is None

    def test_exchange_body_without_access_token_returns_none(self, client, session):
        session.post.return_value = _response(200, {"refresh_token": "R"})
        assert client.exchange_code("XYZ", "V", REDIRECT) is None

    def test_refresh_posts_refresh_grant(self, client, session):
        session.post.return_value = _response(200, TOKEN_BODY)

        pair = client.refresh_token("R0")

        assert pair.access_token == "A"
        assert session.post.call_args.kwargs["data"] == {
            "grant_type": "refresh_token",
            "refresh_token": "R0",
            "client_id": "client-id",
        }

    def test_refresh_keeps_old_refresh_token(self, client, session):
        body = {k: v for k, v in TOKEN_BODY.items() if k != "refresh_token"}
        session.post.return_value = _response(200, body)

        assert client.refresh_token("R0").refresh_token == "R0"

    def test_credentials_not_logged(self, client, session, caplog):
        session.post.return_value = _response(400, {})
        with caplog.at_level("DEBUG"):
            client.exchange_code("secret-code", "secret-verifier", REDIRECT)
        assert "secret-code" not in caplog.text
        assert "secret-verifier" not in caplog.text
        assert "400" in caplog.text


@patch("music_vault.spotify.client.spotipy.Spotify")
class TestWebApi:
    """Test metadata calls"""

    def test_currently_playing(self, mock_spotify, client, sample_track_data):
        mock_spotify.return_value.current_user_playing_track.return_value = {
            "is_playing": True,
            "item": sample_track_data,
        }

        song = client.fetch_currently_playing("token")

        assert song.track_id == "track_123"
        mock_spotify.assert_called_once_with(auth="token", requests_timeout=5)

    def test_paused_returns_none(self, mock_spotify, client, sample_track_data):
        mock_spotify.return_value.current_user_playing_track.return_value = {
            "is_playing": False,
            "item": sample_track_data,
        }
        assert client.fetch_currently_playing("token") is None

    def test_nothing_playing_returns_none(self, mock_spotify, client):
        mock_spotify.return_value.current_user_playing_track.return_value = None
        assert client.fetch_currently_playing("token") is None

    def test_episode_returns_none(self, mock_spotify, client):
        mock_spotify.return_value.current_user_playing_track.return_value = {
            "is_playing": True,
            "item": {"type": "episode", "id": "ep1", "name": "Podcast"},
        }
        assert client.fetch_currently_playing("token") is None

    def test_non_2xx_raises_with_status(self, mock_spotify, client):
        mock_spotify.return_value.current_user_playing_track.side_effect = spotipy.SpotifyException(
            401, -1, "The access token expired"
        )

        with pytest.raises(RemoteFetchFailed) as exc_info:
            client.fetch_currently_playing("token")

        assert exc_info.value.status_code == 401
        assert exc_info.value.is_auth_error
        assert exc_info.value.endpoint == "me/player/currently-playing"

    def test_transport_error_raises_without_status(self, mock_spotify, client):
        mock_spotify.return_value.track.side_effect = requests.ConnectionError("reset")

        with pytest.raises(RemoteFetchFailed) as exc_info:
            client.fetch_by_id("token", "track_123")

        assert exc_info.value.status_code is None

    def test_fetch_by_id(self, mock_spotify, client, sample_track_data):
        mock_spotify.return_value.track.return_value = sample_track_data

        song = client.fetch_by_id("token", "track_123")

        mock_spotify.return_value.track.assert_called_once_with("track_123")
        assert song.name == "Test Song"

    def test_unparsable_track_returns_none(self, mock_spotify, client):
        mock_spotify.return_value.track.return_value = ["not", "a", "track"]
        assert client.fetch_by_id("token", "track_123") is None

    def test_genres_batched_by_50(self, mock_spotify, client):
        ids = [f"artist{i}" for i in range(120)]
        api = mock_spotify.return_value
        api.artists.side_effect = lambda batch: {
            "artists": [{"id": i, "genres": [f"genre-{i}"]} for i in batch]
        }

        index = client.fetch_genres("token", ids + ids[:10] + [""])

        sizes = [len(call.args[0]) for call in api.artists.call_args_list]
        assert sizes == [50, 50, 20]
        assert api.artists.call_args_list[0].args[0][0] == "artist0"
        assert len(index) == 120
        assert index["artist7"] == ["genre-artist7"]

    def test_failed_genre_batch_is_skipped(self, mock_spotify, client):
        ids = [f"artist{i}" for i in range(60)]
        api = mock_spotify.return_value

        def artists(batch):
            if batch[0] == "artist0":
                raise spotipy.SpotifyException(500, -1, "server error")
            return {"artists": [{"id": i, "genres": ["rock"]} for i in batch]}

        api.artists.side_effect = artists

        index = client.fetch_genres("token", ids)

        assert sorted(index) == sorted(ids[50:])

    def test_rejected_token_in_genre_batch_raises(self, mock_spotify, client):
        mock_spotify.return_value.artists.side_effect = spotipy.SpotifyException(401, -1, "expired")

        with pytest.raises(RemoteFetchFailed) as exc_info:
            client.fetch_genres("token", ["a1"])
        assert exc_info.value.is_auth_error

    def test_no_artists_no_request(self, mock_spotify, client):
        assert client.fetch_genres("token", []) == {}
        mock_spotify.return_value.artists.assert_not_called()

    def test_fetch_profile(self, mock_spotify, client):
        mock_spotify.return_value.current_user.return_value = {
            "id": "user1",
            "display_name": "Jane",
            "external_urls": {"spotify": "https://open.spotify.com/user/user1"},
        }

        profile = client.fetch_profile("token")

        assert profile.display_name == "Jane"
        assert profile.profile_url == "https://open.spotify.com/user/user1"
