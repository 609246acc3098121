"""
Song notes module for music-vault.

    - frontmatter: Frontmatter block serialization, parsing and upsert
    - vault: Document store protocol and the file system vault
    - sync: Note creation and batch refresh
"""

from music_vault.notes.frontmatter import (
    FRONTMATTER_KEYS,
    extract_track_id,
    parse_frontmatter,
    serialize_frontmatter,
    upsert_frontmatter,
)
from music_vault.notes.sync import DocumentHandle, RefreshStats, SyncEngine
from music_vault.notes.vault import DocumentStore, FileSystemVault

__all__ = [
    "FRONTMATTER_KEYS",
    "extract_track_id",
    "parse_frontmatter",
    "serialize_frontmatter",
    "upsert_frontmatter",
    "DocumentHandle",
    "RefreshStats",
    "SyncEngine",
    "DocumentStore",
    "FileSystemVault",
]
