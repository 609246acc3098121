"""
Data models for Spotify entities.

This module defines immutable dataclasses for the track metadata that ends
up in a song note's frontmatter.

Design Decisions:
    - All dataclasses are frozen (immutable); enrichment returns a new value
    - Every optional field has a default, so loosely-typed API responses are
      turned into a structured Song at the boundary and raw dicts never
      reach the sync engine
    - Spotify has no per-track genres; genres come from the track's artists

Usage:
    from music_vault.spotify.models import Song, enrich

    song = Song.from_spotify_api(track_json)
    song = enrich(song, {"artist1": ["rock", "pop"]})
"""

from dataclasses import dataclass, field, replace
from typing import Any


# artist_id -> genres, built per sync call
GenreIndex = dict[str, list[str]]


@dataclass(frozen=True)
class Artist:
    """
    A track's credited artist.

    Attributes:
        artist_id: Spotify artist ID. Example: "1dfeR4HaWDbWqFHLkxsg1d"
        name: Display name. Example: "Queen"
        link: Artist page URL, if Spotify provided one.
    """
    artist_id: str
    name: str
    link: str | None = None

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "Artist":
        return cls(
            artist_id=data.get("id") or "",
            name=data.get("name") or "",
            link=(data.get("external_urls") or {}).get("spotify"),
        )


@dataclass(frozen=True)
class Album:
    """
    Album the track appears on.

    Attributes:
        name: Album name. Example: "A Night at the Opera"
        release_date: "1975-11-21", "1975-11" or "1975" depending on
                      Spotify's release_date_precision.
    """
    name: str
    release_date: str | None = None


@dataclass(frozen=True)
class Song:
    """
    Immutable note record for one Spotify track.

    Attributes:
        track_id: Spotify track ID; the key linking a note to its track.
        name: Track title.
        link: open.spotify.com URL, or the spotify: URI as fallback.
        isrc: International Standard Recording Code, if available.
        duration_ms: Track duration in milliseconds.
        explicit: Whether the track is marked explicit.
        popularity: Spotify popularity score (0-100).
        artists: All credited artists, in Spotify's order.
        album: Album information, if present in the response.
        genres: Deduplicated genres of the artists (empty until enriched).
    """
    track_id: str
    name: str
    link: str
    isrc: str | None = None
    duration_ms: int | None = None
    explicit: bool | None = None
    popularity: int | None = None
    artists: tuple[Artist, ...] = field(default_factory=tuple)
    album: Album | None = None
    genres: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_spotify_api(cls, item: dict[str, Any]) -> "Song":
        """
        Create a Song from a Spotify track object.

        Args:
            item: The track JSON from /v1/tracks/{id} or the 'item' of
                  /v1/me/player/currently-playing.

        Returns:
            Song with defaults applied for every missing optional field.

        Raises:
            TypeError, AttributeError, ValueError: If item is not shaped
                like a track object. The client catches these and treats
                the response as unparsable.
        """
        if not isinstance(item, dict):
            raise TypeError(f"expected a track object, got {type(item).__name__}")

        album_data = item.get("album")
        album = None
        if album_data:
            album = Album(
                name=album_data.get("name") or "",
                release_date=album_data.get("release_date"),
            )

        return cls(
            track_id=item.get("id") or "",
            name=item.get("name") or "",
            link=(item.get("external_urls") or {}).get("spotify") or item.get("uri") or "",
            isrc=(item.get("external_ids") or {}).get("isrc"),
            duration_ms=_optional_int(item.get("duration_ms")),
            explicit=item.get("explicit") if isinstance(item.get("explicit"), bool) else None,
            popularity=_optional_int(item.get("popularity")),
            artists=tuple(Artist.from_spotify_api(a) for a in item.get("artists") or []),
            album=album,
        )

    @property
    def artist_ids(self) -> list[str]:
        """IDs of all artists, skipping empty ones."""
        return [artist.artist_id for artist in self.artists if artist.artist_id]

    @property
    def markdown_link(self) -> str:
        """
        Markdown link to the track.

        Example:
            "[Bohemian Rhapsody](https://open.spotify.com/track/...)"
        """
        return f"[{self.name}]({self.link})"


@dataclass(frozen=True)
class SpotifyProfile:
    """
    The connected user's profile (from /v1/me).

    Attributes:
        display_name: The user's display name.
        profile_url: open.spotify.com URL of the profile.
    """
    display_name: str
    profile_url: str | None = None

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "SpotifyProfile":
        return cls(
            display_name=data.get("display_name") or data.get("id") or "",
            profile_url=(data.get("external_urls") or {}).get("spotify"),
        )


def enrich(song: Song, genre_index: GenreIndex) -> Song:
    """
    Return a copy of song whose genres come from its artists.

    The result is the union of the genres of every artist found in the
    index, in first-seen order, without duplicates. Artists missing from
    the index contribute nothing. Everything else is unchanged.

    Example:
        A: [rock, pop], B: [pop, jazz]  ->  (rock, pop, jazz)
    """
    genres: list[str] = []
    seen: set[str] = set()
    for artist in song.artists:
        for genre in genre_index.get(artist.artist_id, []):
            if genre not in seen:
                seen.add(genre)
                genres.append(genre)
    return replace(song, genres=tuple(genres))


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    return int(value)
