"""Parser for Anki .apkg files.

Opens the archive held in memory, extracts only the collection database to
a temporary directory, reads it through the adapter matching its layout and
binds the media manifest to the archive entries.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from tempfile import TemporaryDirectory

from apkg_ingest.core.config import Settings, get_settings
from apkg_ingest.shared.errors import safe

from .archive import ArchiveReader
from .detector import create_adapter
from .media import MediaResolver
from .models import ParsedCollection

logger = logging.getLogger(__name__)


class ApkgParser:
    """Parser for Anki .apkg files.

    Example:
        parser = ApkgParser()
        with parser.parse(data) as collection:
            for note in collection.notes:
                ...
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the parser.

        Args:
            settings: Application settings; defaults to the cached ones.
        """
        self.settings = settings or get_settings()

    @safe
    def parse(self, data: bytes) -> ParsedCollection:
        """Parse an .apkg package.

        Args:
            data: Raw package bytes.

        Returns:
            Parsed collection. It keeps the archive open for media reads;
            close it when done.

        Raises:
            NotAZipError: If the data is not a zip archive.
            MissingDatabaseError: If no collection database is present.
            UnrecognizedSchemaError: If the database layout is unknown.
            CorruptDatabaseError: If the database cannot be read.
            EntryTooLargeError: If the database exceeds the configured size limit.
        """
        archive = ArchiveReader(data)

        try:
            database = archive.find_database()

            with TemporaryDirectory(prefix="apkg-") as tmp_dir:
                db_path = archive.extract(
                    database.name,
                    Path(tmp_dir),
                    max_bytes=self.settings.importer.max_database_bytes,
                )

                with closing(sqlite3.connect(db_path)) as conn:
                    adapter = create_adapter(conn, self.settings.importer)

                    models = adapter.load_models()
                    decks = adapter.load_decks()
                    label = adapter.collection_label(decks)
                    notes = adapter.load_notes()
                    cards = adapter.load_cards()

            media = MediaResolver(archive)
        except BaseException:
            archive.close()
            raise

        logger.info(
            "Parsed %s collection '%s': %d notes, %d cards, %d note types, %d media files",
            adapter.generation.value,
            label,
            len(notes),
            len(cards),
            len(models),
            len(media),
        )

        return ParsedCollection(
            collection_label=label,
            schema_generation=adapter.generation,
            notes=notes,
            cards=cards,
            models=models,
            decks=decks,
            media=media,
            archive=archive,
        )
