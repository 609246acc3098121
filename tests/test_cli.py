"""Test the command-line interface"""

from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from music_vault import __version__
from music_vault.cli import PUBLIC_NOTICE, cli
from music_vault.core.exceptions import RemoteFetchFailed
from music_vault.core.storage import JsonFileStore
from music_vault.core.token_store import TokenStore
from music_vault.spotify.client import SpotifyApiClient
from music_vault.spotify.models import Artist, Song, SpotifyProfile


@pytest.fixture
def vault_dir(temp_dir):
    path = temp_dir / "vault"
    path.mkdir()
    return path


@pytest.fixture
def config_file(temp_dir, vault_dir):
    path = temp_dir / "config.yaml"
    path.write_text(
        "vault:\n"
        f"  directory: '{vault_dir}'\n"
        "  songs_folder: Songs\n"
        "storage:\n"
        f"  data_file: '{temp_dir / 'data.json'}'\n"
        f"  log_directory: '{temp_dir / 'logs'}'\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def data_store(temp_dir):
    return TokenStore(JsonFileStore(temp_dir / "data.json"))


@pytest.fixture
def notified(data_store):
    data_store.mark_notified()
    return data_store


@pytest.fixture
def client():
    """Patch the client built by create_context"""
    instance = Mock(spec=SpotifyApiClient)
    with patch("music_vault.app.SpotifyApiClient", return_value=instance):
        yield instance


@pytest.fixture
def run(config_file, monkeypatch):
    for name in ("MUSIC_VAULT_DIRECTORY", "MUSIC_VAULT_SONGS_FOLDER", "MUSIC_VAULT_CLIENT_ID"):
        monkeypatch.delenv(name, raising=False)
    runner = CliRunner()

    def invoke(*args, **kwargs):
        return runner.invoke(cli, ["--config", str(config_file), *args], **kwargs)

    return invoke


def _song():
    return Song(
        track_id="t1",
        name="Bohemian Rhapsody",
        link="https://open.spotify.com/track/t1",
        artists=(Artist("a1", "Queen"),),
    )


class TestGroup:
    """Test group options"""

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_shows_help(self):
        result = CliRunner().invoke(cli, [])
        assert result.exit_code == 0
        assert "login" in result.output

    def test_config_error(self, temp_dir, monkeypatch):
        monkeypatch.delenv("MUSIC_VAULT_DIRECTORY", raising=False)
        result = CliRunner().invoke(cli, ["--config", str(temp_dir / "missing.yaml"), "status"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestNotice:
    """Test the one-time notice"""

    def test_shown_once(self, run, client, data_store):
        first = run("status")
        second = run("status")

        assert PUBLIC_NOTICE in first.output
        assert PUBLIC_NOTICE not in second.output
        assert data_store.has_notified_once()


class TestLogin:
    """Test login and logout"""

    @patch("music_vault.auth.surface.webbrowser.open", return_value=True)
    def test_login_stores_tokens(self, mock_open, run, client, notified, token_pair):
        client.exchange_code.return_value = token_pair

        result = run("login", input="obsidian://music-vault-callback?code=abc\n")

        assert result.exit_code == 0, result.output
        assert "Spotify connected" in result.output
        assert client.exchange_code.call_args[0][0] == "abc"
        assert notified.get() == token_pair
        assert mock_open.call_args[0][0].startswith("https://accounts.spotify.com/authorize?")

    @patch("music_vault.auth.surface.webbrowser.open", return_value=True)
    def test_login_denied(self, mock_open, run, client, notified):
        result = run("login", input="obsidian://music-vault-callback?error=access_denied\n")

        assert result.exit_code == 1
        assert "access_denied" in result.output
        client.exchange_code.assert_not_called()

    @patch("music_vault.auth.surface.webbrowser.open", return_value=True)
    def test_login_cancelled(self, mock_open, run, client, notified):
        result = run("login", input="\n")

        assert result.exit_code == 1
        assert "cancelled" in result.output
        assert notified.get() is None

    def test_logout(self, run, client, notified, token_pair):
        notified.set(token_pair)

        result = run("logout")

        assert result.exit_code == 0
        assert notified.get() is None

    def test_logout_recovers_corrupted_data_file(self, run, client, temp_dir):
        (temp_dir / "data.json").write_text("{not json", encoding="utf-8")

        result = run("logout")

        assert result.exit_code == 0, result.output
        assert "Spotify disconnected" in result.output
        assert TokenStore(JsonFileStore(temp_dir / "data.json")).get() is None

    def test_corrupted_data_file_reported(self, run, client, temp_dir):
        (temp_dir / "data.json").write_text("{not json", encoding="utf-8")

        result = run("status")

        assert result.exit_code == 1
        assert "Data file corrupted" in result.output


class TestCommands:
    """Test the note commands"""

    def test_status_not_connected(self, run, client, notified):
        result = run("status")
        assert result.exit_code == 0
        assert "Not connected" in result.output

    def test_status_connected(self, run, client, notified, token_pair):
        notified.set(token_pair)
        client.fetch_profile.return_value = SpotifyProfile("Jane")

        result = run("status")

        assert "Connected to Spotify as Jane" in result.output
        client.fetch_profile.assert_called_once_with("access-1")

    def test_link(self, run, client, notified, token_pair):
        notified.set(token_pair)
        client.fetch_currently_playing.return_value = _song()

        result = run("link")

        assert result.exit_code == 0
        assert "[Bohemian Rhapsody](https://open.spotify.com/track/t1)" in result.output

    def test_link_not_connected(self, run, client, notified):
        result = run("link")

        assert result.exit_code == 1
        assert "music-vault login" in result.output
        client.fetch_currently_playing.assert_not_called()

    def test_note_nothing_playing(self, run, client, notified, token_pair):
        notified.set(token_pair)
        client.fetch_currently_playing.return_value = None

        result = run("note")

        assert result.exit_code == 1
        assert "No song playing" in result.output

    def test_note_creates_then_reports_up_to_date(self, run, client, notified, token_pair, vault_dir):
        notified.set(token_pair)
        client.fetch_currently_playing.return_value = _song()
        client.fetch_genres.return_value = {"a1": ["rock"]}

        first = run("note")
        second = run("note")

        assert "Created song note: Songs/Bohemian Rhapsody.md" in first.output
        assert "up to date" in second.output
        assert (vault_dir / "Songs" / "Bohemian Rhapsody.md").is_file()

    @patch("music_vault.cli.click.launch")
    def test_note_open(self, mock_launch, run, client, notified, token_pair, vault_dir):
        notified.set(token_pair)
        client.fetch_currently_playing.return_value = _song()
        client.fetch_genres.return_value = {}

        result = run("note", "--folder", "Music", "--open")

        assert result.exit_code == 0
        mock_launch.assert_called_once_with(str(vault_dir.resolve() / "Music" / "Bohemian Rhapsody.md"))

    def test_refresh_reports_failures(self, run, client, notified, token_pair, vault_dir):
        notified.set(token_pair)
        songs = vault_dir / "Songs"
        songs.mkdir()
        (songs / "a.md").write_text('---\ntrack_id: "t1"\n---\n\nA', encoding="utf-8")
        (songs / "b.md").write_text('---\ntrack_id: "t2"\n---\n\nB', encoding="utf-8")
        client.fetch_by_id.side_effect = [_song(), RemoteFetchFailed("HTTP 404", status_code=404)]
        client.fetch_genres.return_value = {}

        result = run("refresh")

        assert result.exit_code == 1
        assert "1 updated, 1 failed" in result.output
        assert (songs / "a.md").read_text(encoding="utf-8").endswith("\n\nA")

    def test_refresh_empty_folder(self, run, client, notified, token_pair):
        notified.set(token_pair)
        result = run("refresh")
        assert result.exit_code == 0
        assert "No song notes" in result.output

    def test_unexpected_error(self, run, client, notified, token_pair):
        notified.set(token_pair)
        client.fetch_currently_playing.side_effect = RuntimeError("kaboom")

        result = run("link")

        assert result.exit_code == 1
        assert "Unexpected error: kaboom" in result.output
