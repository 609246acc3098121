"""
Document store for song notes.

The sync engine only needs five operations on the notes vault. They are
described by the DocumentStore protocol; FileSystemVault implements them on
a plain directory (an Obsidian vault is just a folder of Markdown files).

Paths:
    Every path crossing this interface is vault-relative and uses forward
    slashes ("Songs/Bohemian Rhapsody.md"), whatever the platform. Paths
    escaping the vault root are rejected.

Errors:
    OSError is translated to FileSystemFailure carrying the path.
"""

from pathlib import Path, PurePosixPath
from typing import Protocol

from music_vault.core.exceptions import FileSystemFailure
from music_vault.core.logger import get_logger

logger = get_logger(__name__)


class DocumentStore(Protocol):
    """Host document storage used by the sync engine."""

    def list(self, folder: str = "") -> list[str]:
        ...

    def read(self, path: str) -> str:
        ...

    def write(self, path: str, content: str) -> None:
        ...

    def create_folder(self, path: str) -> None:
        ...

    def exists(self, path: str) -> bool:
        ...


class FileSystemVault:
    """
    DocumentStore backed by a directory on disk.

    Attributes:
        root: Absolute vault directory.

    Example:
        vault = FileSystemVault(Path("~/Notes").expanduser())
        vault.create_folder("Songs")
        vault.write("Songs/Song.md", "---\\n...\\n---\\n\\n")
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser().resolve()

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path.strip("/"))
        if relative.is_absolute() or ".." in relative.parts:
            raise FileSystemFailure(
                f"Path is outside the vault: {path}",
                details={"path": path}
            )
        return self.root.joinpath(*relative.parts)

    def list(self, folder: str = "") -> list[str]:
        """
        List files below folder (recursively), sorted by path.

        A missing folder lists as empty.
        """
        base = self._resolve(folder)
        if not base.is_dir():
            return []
        try:
            files = [p for p in base.rglob("*") if p.is_file()]
        except OSError as e:
            raise FileSystemFailure(
                f"Could not list {folder or 'vault root'}: {e}",
                details={"path": folder}
            ) from e
        return sorted(p.relative_to(self.root).as_posix() for p in files)

    def read(self, path: str) -> str:
        try:
            with open(self._resolve(path), "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FileSystemFailure(f"Could not read {path}: {e}", details={"path": path}) from e

    def write(self, path: str, content: str) -> None:
        target = self._resolve(path)
        try:
            # newline="" on both sides: no line ending translation
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise FileSystemFailure(f"Could not write {path}: {e}", details={"path": path}) from e
        logger.debug(f"Wrote {path}")

    def create_folder(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.mkdir()
        except FileExistsError as e:
            if not target.is_dir():
                raise FileSystemFailure(
                    f"A file exists where a folder is expected: {path}",
                    details={"path": path}
                ) from e
        except OSError as e:
            raise FileSystemFailure(f"Could not create folder {path}: {e}", details={"path": path}) from e

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()
