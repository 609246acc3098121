"""Test Spotify data models and helpers"""

import pytest

from music_vault.spotify.models import Album, Artist, Song, SpotifyProfile, enrich
from music_vault.utils import chunked, sanitize_filename, unique


class TestSong:
    """Test Song parsing"""

    def test_from_spotify_api(self, sample_track_data):
        song = Song.from_spotify_api(sample_track_data)

        assert song.track_id == "track_123"
        assert song.name == "Test Song"
        assert song.link == "https://open.spotify.com/track/track_123"
        assert song.isrc == "USABC2300001"
        assert song.duration_ms == 210000
        assert song.explicit is False
        assert song.popularity == 75
        assert song.artists[0] == Artist(
            "artist_a", "Artist A", "https://open.spotify.com/artist/artist_a"
        )
        assert song.album == Album("Test Album", "2023-01-01")
        assert song.genres == ()

    def test_link_falls_back_to_uri(self):
        song = Song.from_spotify_api({"id": "t1", "name": "X", "uri": "spotify:track:t1"})
        assert song.link == "spotify:track:t1"

    def test_missing_optional_fields_get_defaults(self):
        song = Song.from_spotify_api({"id": "t1", "name": "X"})

        assert song.isrc is None
        assert song.duration_ms is None
        assert song.explicit is None
        assert song.popularity is None
        assert song.artists == ()
        assert song.album is None

    def test_non_dict_raises(self):
        with pytest.raises(TypeError):
            Song.from_spotify_api(None)

    def test_markdown_link(self, sample_song):
        assert sample_song.markdown_link == "[Test Song](https://open.spotify.com/track/track_123)"

    def test_artist_ids_skip_empty(self):
        song = Song("t1", "X", "l", artists=(Artist("a", "A"), Artist("", "Unknown")))
        assert song.artist_ids == ["a"]

    def test_profile_falls_back_to_user_id(self):
        assert SpotifyProfile.from_spotify_api({"id": "user1"}).display_name == "user1"


class TestEnrich:
    """Test genre enrichment"""

    def test_union_in_first_seen_order(self, sample_song):
        enriched = enrich(sample_song, {"artist_a": ["rock", "pop"], "artist_b": ["pop", "jazz"]})
        assert enriched.genres == ("rock", "pop", "jazz")

    def test_returns_new_value(self, sample_song):
        enriched = enrich(sample_song, {"artist_a": ["rock"]})
        assert sample_song.genres == ()
        assert enriched is not sample_song
        assert enriched.track_id == sample_song.track_id

    def test_unknown_artists_contribute_nothing(self, sample_song):
        assert enrich(sample_song, {}).genres == ()


class TestUtils:
    """Test filename and batching helpers"""

    def test_sanitize_removes_unsafe_characters(self):
        assert sanitize_filename('AC/DC: "Live"?') == "ACDC Live"

    def test_sanitize_caps_length(self):
        assert len(sanitize_filename("x" * 300)) == 200

    def test_sanitize_trims_after_cut(self):
        assert sanitize_filename("a" * 199 + " b") == "a" * 199

    def test_sanitize_removes_control_characters(self):
        assert sanitize_filename("Intro\n\tOutro\x00") == "IntroOutro"

    def test_sanitize_strips_dots(self):
        assert sanitize_filename("...Ready For It?.") == "Ready For It"
        assert sanitize_filename("..") == "Untitled Song"

    def test_sanitize_falls_back(self):
        assert sanitize_filename("???") == "Untitled Song"
        assert sanitize_filename("") == "Untitled Song"

    def test_unique_keeps_first_occurrence(self):
        assert unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_chunked(self):
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_chunked_rejects_zero(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))
