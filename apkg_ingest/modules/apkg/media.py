"""Media attachments of an .apkg package.

The ``media`` entry is a JSON object mapping numbered archive entries to the
original file names referenced from note fields:

    {"0": "image1.png", "1": "audio.mp3"}

Bytes are read from the archive only when a file name is requested.
"""

from __future__ import annotations

import json
import logging
import zipfile
import zlib
from collections.abc import Iterable, Iterator

from apkg_ingest.shared.errors import safe_with_fallback

from .archive import MEDIA_MANIFEST_NAME, ArchiveReader

logger = logging.getLogger(__name__)


@safe_with_fallback(default_factory=dict)
def decode_manifest(raw: bytes) -> dict[str, str]:
    """Decode the media manifest.

    Args:
        raw: Raw bytes of the ``media`` entry.

    Returns:
        Mapping of entry names to original file names; empty if the
        manifest cannot be decoded.
    """
    data = json.loads(raw.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"media manifest is a {type(data).__name__}, expected an object")

    return {str(key): str(name) for key, name in data.items() if name}


class MediaResolver:
    """Binds media file names to archive entries and reads them lazily.

    Example:
        resolver = MediaResolver(archive)
        data = resolver.get("image1.png")
    """

    def __init__(self, archive: ArchiveReader | None = None) -> None:
        """Read the manifest and bind every entry that exists.

        Args:
            archive: Opened package archive; ``None`` gives an empty resolver.
        """
        self._archive = archive
        self.index: dict[str, str] = {}
        self._entries: dict[str, str] = {}

        if archive is None or MEDIA_MANIFEST_NAME not in archive:
            return

        try:
            raw = archive.read(MEDIA_MANIFEST_NAME)
        except (OSError, zipfile.BadZipFile) as e:
            logger.warning("Failed to read media manifest: %s", e)
            return

        self.index = decode_manifest(raw)

        for key, filename in self.index.items():
            entry = archive.get(key)
            if entry is None or entry.is_dir:
                logger.debug("Media entry %s for %s is missing", key, filename)
                continue
            self._entries[filename] = key

        logger.debug(
            "Media manifest lists %d files, %d bound to archive entries",
            len(self.index),
            len(self._entries),
        )

    @property
    def filenames(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, filename: object) -> bool:
        return filename in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, filename: str) -> bytes | None:
        """Read the bytes of one media file.

        Args:
            filename: Original file name as referenced from a field.

        Returns:
            File content, or None if the file is unknown or unreadable.
        """
        key = self._entries.get(filename)
        if key is None or self._archive is None:
            return None

        try:
            return self._archive.read(key)
        except (OSError, zipfile.BadZipFile, zlib.error, EOFError, RuntimeError) as e:
            logger.warning("Failed to extract media file %s (entry %s): %s", filename, key, e)
            return None

    def resolve(self, filenames: Iterable[str]) -> tuple[dict[str, bytes], list[str]]:
        """Read a set of referenced files.

        Args:
            filenames: File names referenced by flashcards.

        Returns:
            Tuple of (found bytes by file name, names that did not resolve).
        """
        found: dict[str, bytes] = {}
        missing: list[str] = []

        for filename in dict.fromkeys(filenames):
            data = self.get(filename)
            if data is None:
                missing.append(filename)
            else:
                found[filename] = data

        return found, missing

    def iter_media(self) -> Iterator[tuple[str, bytes]]:
        """Yield every readable media file, one at a time."""
        for filename in self._entries:
            data = self.get(filename)
            if data is not None:
                yield filename, data
