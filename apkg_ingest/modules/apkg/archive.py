"""Read access to the zip container of an .apkg package.

The .apkg format is a ZIP archive containing:
- collection.anki21 / collection.anki2: SQLite database with notes, cards,
  note types and decks
- media: JSON mapping of numbered entry names to original file names
- media files (numbered)

Entries are read on demand; nothing is decompressed up front.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import IO

from .exceptions import EntryTooLargeError, MissingDatabaseError, NotAZipError

logger = logging.getLogger(__name__)

# Newer exporters write a stub collection.anki2 next to the real anki21 file
DATABASE_ENTRY_NAMES = ("collection.anki21", "collection.anki2")
MEDIA_MANIFEST_NAME = "media"


@dataclass(frozen=True)
class ArchiveEntry:
    """Named, lazily readable member of the archive.

    Attributes:
        name: Entry name inside the zip.
        size: Uncompressed size in bytes.
        compressed_size: Stored size in bytes.
        is_dir: Whether the entry is a directory marker.
    """

    name: str
    size: int
    compressed_size: int
    is_dir: bool
    _zip: zipfile.ZipFile = field(repr=False, compare=False)

    def open(self) -> IO[bytes]:
        """Open a streaming reader over the entry's bytes."""
        return self._zip.open(self.name, "r")

    def read(self) -> bytes:
        return self._zip.read(self.name)


class ArchiveReader:
    """Zip container of an .apkg package held in memory.

    Example:
        with ArchiveReader(data) as archive:
            entry = archive.find_database()
            with entry.open() as stream:
                ...
    """

    def __init__(self, data: bytes) -> None:
        """Open the archive.

        Args:
            data: Raw package bytes.

        Raises:
            NotAZipError: If the buffer is not a zip container.
        """
        buffer = BytesIO(data)
        if not data or not zipfile.is_zipfile(buffer):
            raise NotAZipError(details={"value": f"{len(data)} bytes"})

        try:
            self._zip = zipfile.ZipFile(buffer, "r")
        except zipfile.BadZipFile as e:
            raise NotAZipError(details={"value": str(e)}) from e

        self._entries = {
            info.filename: ArchiveEntry(
                name=info.filename,
                size=info.file_size,
                compressed_size=info.compress_size,
                is_dir=info.is_dir(),
                _zip=self._zip,
            )
            for info in self._zip.infolist()
        }

    def entries(self) -> dict[str, ArchiveEntry]:
        return dict(self._entries)

    def get(self, name: str) -> ArchiveEntry | None:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def open(self, name: str) -> IO[bytes]:
        """Open a streaming reader over one entry.

        Raises:
            KeyError: If the entry does not exist.
        """
        return self._entries[name].open()

    def read(self, name: str) -> bytes:
        return self._entries[name].read()

    def extract(self, name: str, directory: Path, max_bytes: int | None = None) -> Path:
        """Stream one entry into ``directory`` without touching the others.

        Args:
            name: Entry to extract.
            directory: Target directory.
            max_bytes: Largest uncompressed size accepted, unlimited if None.

        Returns:
            Path of the written file.

        Raises:
            EntryTooLargeError: If the entry is larger than ``max_bytes``.
        """
        entry = self._entries[name]
        if max_bytes is not None and entry.size > max_bytes:
            raise EntryTooLargeError(
                message=f"Entry {name} is {entry.size} bytes, above the {max_bytes} byte limit.",
                details={"entry": name, "value": entry.size, "expected": f"<= {max_bytes} bytes"},
            )

        target = directory / Path(name).name
        with entry.open() as source, open(target, "wb") as sink:
            shutil.copyfileobj(source, sink)
        return target

    def find_database(self) -> ArchiveEntry:
        """Find the embedded collection database.

        Anki 2.1 exports use collection.anki21, Anki 2.0 uses collection.anki2.

        Raises:
            MissingDatabaseError: If neither entry is present.
        """
        for name in DATABASE_ENTRY_NAMES:
            entry = self._entries.get(name)
            if entry is not None and not entry.is_dir:
                logger.debug("Using database entry %s (%d bytes)", name, entry.size)
                return entry

        raise MissingDatabaseError(details={"expected": list(DATABASE_ENTRY_NAMES)})

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> ArchiveReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
