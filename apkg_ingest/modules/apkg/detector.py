"""Detection of the collection database layout.

The layout is decided once, from the table catalog, and mapped to exactly
one adapter; nothing downstream branches on the schema generation.
"""

import logging
import sqlite3

from apkg_ingest.core.config import ImportConfig

from .adapters import CollectionAdapter, LegacyCollectionAdapter, ModernCollectionAdapter
from .exceptions import UnrecognizedSchemaError
from .models import SchemaGeneration

logger = logging.getLogger(__name__)

MODERN_MARKER_TABLE = "notetypes"
LEGACY_MARKER_TABLE = "col"


def list_tables(conn: sqlite3.Connection) -> set[str]:
    """Return the names of all tables in the database."""
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {row[0] for row in rows}


def classify_tables(tables: set[str]) -> SchemaGeneration:
    """Classify a table catalog into a schema generation.

    Args:
        tables: Table names of the collection database.

    Returns:
        MODERN when a normalized note type table exists, otherwise LEGACY
        when the collection table exists.

    Raises:
        UnrecognizedSchemaError: If neither marker table is present.
    """
    if MODERN_MARKER_TABLE in tables:
        return SchemaGeneration.MODERN
    if LEGACY_MARKER_TABLE in tables:
        return SchemaGeneration.LEGACY

    raise UnrecognizedSchemaError(details={"tables": sorted(tables)})


def detect_schema(conn: sqlite3.Connection) -> SchemaGeneration:
    """Inspect the table catalog of an open collection database."""
    return classify_tables(list_tables(conn))


def create_adapter(
    conn: sqlite3.Connection,
    config: ImportConfig | None = None,
) -> CollectionAdapter:
    """Select the collection adapter matching the database layout.

    Args:
        conn: Open connection to the collection database.
        config: Import settings passed to the adapter.

    Returns:
        Adapter for the detected generation.
    """
    tables = list_tables(conn)
    generation = classify_tables(tables)
    logger.info("Detected %s collection schema", generation.value)

    if generation is SchemaGeneration.MODERN:
        return ModernCollectionAdapter(conn, config, has_decks_table="decks" in tables)
    return LegacyCollectionAdapter(conn, config)
