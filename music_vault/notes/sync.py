"""
Song note synchronization engine.

Keeps Markdown song notes in step with Spotify. A note belongs to a track
through the ``track_id`` key of its frontmatter, never through its file
name, so users can rename and move notes inside the songs folder freely.

Operations:
    note_for_current_track   create or update the note of the playing track
    current_track_link       Markdown link to the playing track
    locate_or_create         find the note of a song by track_id, or create it
    refresh_all              re-fetch every note's track and rewrite its block

Idempotency:
    Only the frontmatter block is regenerated; the note body is kept
    byte-for-byte. A note is written only when its content actually
    changed, so running a sync twice in a row writes nothing the second
    time.

Refresh Strategy:
    1. List .md notes under the folder and read their track_id
    2. Fetch each track by id, one request at a time
    3. One batched genre lookup for every artist of every fetched track
    4. Enrich and upsert each note

    A note that fails (fetch error, no data, write error) is counted and
    written to the refresh failures report; the batch carries on. Notes
    without a track_id are skipped.

Usage:
    engine = SyncEngine(client, tokens, vault)
    handle = engine.note_for_current_track("Songs")
    stats = engine.refresh_all("Songs")
"""

from dataclasses import dataclass
from typing import Callable

from music_vault.auth.tokens import TokenManager
from music_vault.core.config import normalize_folder
from music_vault.core.exceptions import (
    DocumentParseSkip,
    FileSystemFailure,
    NoActiveTrack,
    RemoteFetchFailed,
)
from music_vault.core.logger import get_logger, log_refresh_failure
from music_vault.notes.frontmatter import (
    extract_track_id,
    serialize_frontmatter,
    upsert_frontmatter,
)
from music_vault.notes.vault import DocumentStore
from music_vault.spotify.client import SpotifyApiClient
from music_vault.spotify.models import GenreIndex, Song, enrich
from music_vault.utils import sanitize_filename, unique

logger = get_logger(__name__)


NOTE_EXTENSION = ".md"

# progress(path, success), called once per processed note
ProgressCallback = Callable[[str, bool], None]


@dataclass(frozen=True)
class DocumentHandle:
    """
    A song note touched by locate_or_create.

    Attributes:
        path: Vault-relative path of the note.
        created: True if the note did not exist before.
        updated: True if the note was written (always True when created).
    """
    path: str
    created: bool
    updated: bool


@dataclass
class RefreshStats:
    """
    Outcome of refresh_all.

    Attributes:
        updated_count: Notes whose track was fetched and block upserted
                       (including notes whose content was already current).
        failed_count: Notes whose fetch or write failed.
        skipped_count: Notes that were unreadable or have no track_id.
    """
    updated_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0

    @property
    def summary(self) -> str:
        """Human-readable summary, e.g. "12 updated, 1 failed, 3 skipped"."""
        parts = [f"{self.updated_count} updated"]
        if self.failed_count:
            parts.append(f"{self.failed_count} failed")
        if self.skipped_count:
            parts.append(f"{self.skipped_count} skipped")
        return ", ".join(parts)


@dataclass(frozen=True)
class _NoteEntry:
    path: str
    content: str
    track_id: str


class SyncEngine:
    """
    Creates and refreshes song notes.

    Attributes:
        _client: Spotify metadata client.
        _tokens: Supplies access tokens and handles 401 refreshes.
        _vault: Where the notes live.
    """

    def __init__(
        self,
        client: SpotifyApiClient,
        tokens: TokenManager,
        vault: DocumentStore
    ) -> None:
        self._client = client
        self._tokens = tokens
        self._vault = vault

    # =========================================================================
    # Folder and note discovery
    # =========================================================================

    def ensure_folder(self, folder: str) -> None:
        """
        Create folder and any missing parent, outermost first.

        Example:
            ensure_folder("Music/Songs")  # creates "Music", then "Music/Songs"
        """
        current = ""
        for part in normalize_folder(folder).split("/"):
            if not part:
                continue
            current = f"{current}/{part}" if current else part
            if not self._vault.exists(current):
                logger.debug(f"Creating folder {current}")
                self._vault.create_folder(current)

    def list_note_paths(self, folder: str) -> list[str]:
        """Markdown notes under folder, in the vault's listing order."""
        return [
            path for path in self._vault.list(normalize_folder(folder))
            if path.endswith(NOTE_EXTENSION)
        ]

    def _read_note(self, path: str) -> _NoteEntry:
        """
        Raises:
            DocumentParseSkip: If the note can't be read or has no track_id.
        """
        try:
            content = self._vault.read(path)
        except FileSystemFailure as e:
            raise DocumentParseSkip(str(e), details={"path": path}) from e

        track_id = extract_track_id(content)
        if not track_id:
            raise DocumentParseSkip(f"No track_id in {path}", details={"path": path})
        return _NoteEntry(path=path, content=content, track_id=track_id)

    def _available_path(self, folder: str, name: str) -> str:
        base = sanitize_filename(name)
        prefix = f"{folder}/" if folder else ""
        path = f"{prefix}{base}{NOTE_EXTENSION}"
        index = 1
        while self._vault.exists(path):
            index += 1
            path = f"{prefix}{base} - {index}{NOTE_EXTENSION}"
        return path

    # =========================================================================
    # Single note
    # =========================================================================

    def locate_or_create(self, song: Song, folder: str) -> DocumentHandle:
        """
        Upsert the note of song, creating it if no note has its track_id.

        The first note (in listing order) whose track_id matches wins.
        Unreadable notes are logged and skipped. A new note is named after
        the track; name collisions get " - 2", " - 3", ... appended.

        Raises:
            FileSystemFailure: If the folder or note could not be written.
        """
        folder = normalize_folder(folder)
        self.ensure_folder(folder)
        block = serialize_frontmatter(song)

        for path in self.list_note_paths(folder):
            try:
                entry = self._read_note(path)
            except DocumentParseSkip as e:
                logger.debug(f"Skipping {path}: {e}")
                continue
            if entry.track_id != song.track_id:
                continue

            updated = upsert_frontmatter(entry.content, block)
            changed = updated != entry.content
            if changed:
                self._vault.write(path, updated)
                logger.info(f"Updated song note: {path}")
            else:
                logger.info(f"Song note is up to date: {path}")
            return DocumentHandle(path=path, created=False, updated=changed)

        path = self._available_path(folder, song.name)
        self._vault.write(path, block + "\n\n")
        logger.info(f"Created song note: {path}")
        return DocumentHandle(path=path, created=True, updated=True)

    def current_song(self) -> Song:
        """
        The track playing right now.

        Raises:
            NoActiveTrack: If nothing (or no track) is playing.
            NotAuthenticated: If Spotify is not connected.
            RemoteFetchFailed: If the request failed.
        """
        song = self._tokens.call(self._client.fetch_currently_playing)
        if song is None:
            raise NoActiveTrack("No song playing")
        return song

    def current_track_link(self) -> str:
        """Markdown link "[name](link)" to the playing track."""
        return self.current_song().markdown_link

    def note_for_current_track(self, folder: str) -> DocumentHandle:
        """Create or update the note of the playing track, with genres."""
        song = self.current_song()
        genre_index = self._fetch_genres(song.artist_ids)
        return self.locate_or_create(enrich(song, genre_index), folder)

    def _fetch_genres(self, artist_ids: list[str]) -> GenreIndex:
        if not artist_ids:
            return {}
        return self._tokens.call(lambda token: self._client.fetch_genres(token, artist_ids))

    # =========================================================================
    # Batch refresh
    # =========================================================================

    def refresh_all(self, folder: str, progress: ProgressCallback | None = None) -> RefreshStats:
        """
        Re-fetch the track of every song note under folder and upsert it.

        Args:
            folder: Songs folder (vault-relative).
            progress: Called with (path, success) once per note.

        Returns:
            RefreshStats with the per-note outcome counts.

        Raises:
            NotAuthenticated: If Spotify is not connected or the session
                              expired; the batch stops.
        """
        stats = RefreshStats()

        def report(path: str, success: bool) -> None:
            if progress is not None:
                progress(path, success)

        def fail(entry: _NoteEntry, reason: str) -> None:
            stats.failed_count += 1
            log_refresh_failure(logger, entry.path, entry.track_id, reason)
            report(entry.path, False)

        entries: list[_NoteEntry] = []
        for path in self.list_note_paths(folder):
            try:
                entries.append(self._read_note(path))
            except DocumentParseSkip as e:
                stats.skipped_count += 1
                logger.debug(f"Skipping {path}: {e}")
                report(path, True)

        logger.info(f"Refreshing {len(entries)} song notes")

        fetched: list[tuple[_NoteEntry, Song]] = []
        for entry in entries:
            try:
                song = self._tokens.call(
                    lambda token, track_id=entry.track_id: self._client.fetch_by_id(token, track_id)
                )
            except RemoteFetchFailed as e:
                fail(entry, str(e))
                continue
            if song is None:
                fail(entry, "Spotify returned no usable track data")
                continue
            fetched.append((entry, song))

        artist_ids = unique(
            artist_id for _, song in fetched for artist_id in song.artist_ids
        )
        genre_index = self._fetch_genres(artist_ids)

        for entry, song in fetched:
            updated = upsert_frontmatter(entry.content, serialize_frontmatter(enrich(song, genre_index)))
            if updated != entry.content:
                try:
                    self._vault.write(entry.path, updated)
                except FileSystemFailure as e:
                    fail(entry, str(e))
                    continue
            stats.updated_count += 1
            report(entry.path, True)

        logger.info(f"Refresh finished: {stats.summary}")
        return stats
