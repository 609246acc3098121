"""
Frontmatter codec for song notes.

A song note starts with a block of ``key: value`` lines between two ``---``
lines. music-vault owns that block and rewrites it on every sync; everything
after the closing ``---`` belongs to the user and is never touched.

Block Grammar:
    line 1            exactly "---"
    inner lines       "key: value" (split on the first ": ")
    closing line      the next line that is exactly "---"

    A document whose first line is not "---", or that never closes the
    block, has no frontmatter as far as this module is concerned.

Value Encoding:
    strings           double-quoted; \\ " CR LF TAB escaped
    lists             JSON arrays
    numbers/booleans  bare (true / false)
    absent values     ""

Example:
    ---
    Song Name: "Bohemian Rhapsody"
    Song link: "https://open.spotify.com/track/4u7EnebtmKWzUH433cf5Qv"
    track_id: "4u7EnebtmKWzUH433cf5Qv"
    ...
    ---
"""

import json
import re
from typing import Any

from music_vault.spotify.models import Song


DELIMITER = "---"

FRONTMATTER_KEYS = (
    "Song Name",
    "Song link",
    "track_id",
    "isrc",
    "duration_ms",
    "explicit",
    "popularity",
    "artists_all",
    "artist_ids_all",
    "artist_links_all",
    "genres",
    "Album name",
    "Release date",
)

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\r": "\\r",
    "\n": "\\n",
    "\t": "\\t",
}
_UNESCAPES = {"\\": "\\", '"': '"', "r": "\r", "n": "\n", "t": "\t"}
_ESCAPE_SEQUENCE = re.compile(r"\\(.)", re.DOTALL)


# =============================================================================
# Serialization
# =============================================================================

def _quote(value: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in value) + '"'


def _encode(value: Any) -> str:
    if value is None:
        return '""'
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), ensure_ascii=False)
    return _quote(str(value))


def frontmatter_values(song: Song) -> dict[str, Any]:
    """Values written for song, keyed and ordered like FRONTMATTER_KEYS."""
    album = song.album
    return {
        "Song Name": song.name,
        "Song link": song.link,
        "track_id": song.track_id,
        "isrc": song.isrc,
        "duration_ms": song.duration_ms,
        "explicit": song.explicit,
        "popularity": song.popularity,
        "artists_all": [artist.name for artist in song.artists],
        "artist_ids_all": [artist.artist_id for artist in song.artists],
        "artist_links_all": [artist.link or "" for artist in song.artists],
        "genres": list(song.genres),
        "Album name": album.name if album else None,
        "Release date": album.release_date if album else None,
    }


def serialize_frontmatter(song: Song) -> str:
    """
    Render the frontmatter block for a song.

    Returns:
        The block from the opening to the closing "---", without a
        trailing newline.
    """
    values = frontmatter_values(song)
    lines = [DELIMITER]
    lines.extend(f"{key}: {_encode(values[key])}" for key in FRONTMATTER_KEYS)
    lines.append(DELIMITER)
    return "\n".join(lines)


# =============================================================================
# Parsing
# =============================================================================

def _block_bounds(document: str) -> tuple[list[str], int] | None:
    """
    Locate the leading block.

    Returns:
        (inner lines, offset just past the closing "---") or None.
    """
    lines = document.split("\n")
    if not lines or lines[0] != DELIMITER:
        return None

    offset = len(DELIMITER) + 1
    for index, line in enumerate(lines[1:], start=1):
        if line == DELIMITER:
            return lines[1:index], offset + len(DELIMITER)
        offset += len(line) + 1
    return None


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return _ESCAPE_SEQUENCE.sub(
            lambda m: _UNESCAPES.get(m.group(1), m.group(1)),
            value[1:-1]
        )
    return value


def parse_frontmatter(document: str) -> dict[str, str] | None:
    """
    Read the leading block into a flat mapping.

    Quoted values are unescaped; everything else (numbers, booleans, JSON
    arrays) is returned as written. Lines without a key separator are
    ignored; when a key repeats, its first line wins.

    Returns:
        Mapping of key -> value, or None when there is no block.
    """
    bounds = _block_bounds(document)
    if bounds is None:
        return None

    result: dict[str, str] = {}
    for line in bounds[0]:
        if ": " in line:
            key, value = line.split(": ", 1)
        elif line.endswith(":"):
            key, value = line[:-1], ""
        else:
            continue
        result.setdefault(key.strip(), _unquote(value.strip()))
    return result


def extract_track_id(document: str) -> str | None:
    """Return the track_id recorded in the document's block, if any."""
    values = parse_frontmatter(document)
    if not values:
        return None
    return values.get("track_id") or None


def upsert_frontmatter(document: str, block: str) -> str:
    """
    Replace the document's leading block with block.

    Everything after the closing "---" is kept byte-for-byte. A document
    without a well-formed leading block is returned unchanged.

    Example:
        upsert_frontmatter("---\\nold: 1\\n---\\n\\nMy notes", block)
        # -> block + "\\n\\nMy notes"
    """
    bounds = _block_bounds(document)
    if bounds is None:
        return document
    return block + document[bounds[1]:]
