"""In-memory .apkg packages for tests.

Builds real zip archives with a real SQLite collection in either layout.

Usage:
    from apkg_ingest.tests.fixtures.apkg_builder import build_legacy_apkg

    data = build_legacy_apkg(notes=[(1, BASIC_MODEL_ID, "tag1", ["Front", "Back"])])
"""

import json
import sqlite3
import tempfile
import zipfile
from collections.abc import Callable
from io import BytesIO
from pathlib import Path
from typing import Any

# ==================== Sample Data ====================

BASIC_MODEL_ID = 1234567890
CLOZE_MODEL_ID = 1234567891
DEFAULT_DECK_ID = 1
TEST_DECK_ID = 1234567890123

# (note_id, model_id, tags, field values)
NoteRow = tuple[int, int, str, list[str]]
# (card_id, note_id, deck_id, ord)
CardRow = tuple[int, int, int, int]

LEGACY_MODELS: dict[str, Any] = {
    str(BASIC_MODEL_ID): {
        "name": "Basic",
        "flds": [{"name": "Front", "ord": 0}, {"name": "Back", "ord": 1}],
        "tmpls": [{"name": "Card 1", "qfmt": "{{Front}}", "afmt": "{{Back}}"}],
        "css": "",
    },
    str(CLOZE_MODEL_ID): {
        "name": "Cloze",
        # Stored out of order on purpose; ord decides the position
        "flds": [{"name": "Extra", "ord": 1}, {"name": "Text", "ord": 0}],
        "tmpls": [{"name": "Cloze", "qfmt": "{{cloze:Text}}", "afmt": "{{cloze:Text}}"}],
        "css": "",
    },
}

LEGACY_DECKS: dict[str, Any] = {
    str(DEFAULT_DECK_ID): {"name": "Default", "id": DEFAULT_DECK_ID},
    str(TEST_DECK_ID): {"name": "Test Deck", "id": TEST_DECK_ID},
}

MODERN_NOTETYPES: list[tuple[int, str, list[str]]] = [
    (BASIC_MODEL_ID, "Basic", ["Front", "Back"]),
    (CLOZE_MODEL_ID, "Cloze", ["Text", "Extra"]),
]

MODERN_DECKS: list[tuple[int, str]] = [
    (DEFAULT_DECK_ID, "Default"),
    (TEST_DECK_ID, "Test Deck"),
]

DEFAULT_NOTES: list[NoteRow] = [
    (1, BASIC_MODEL_ID, "tag1 tag2", ["Test Front", "Test Back"]),
]

DEFAULT_CARDS: list[CardRow] = [
    (1, 1, TEST_DECK_ID, 0),
]


# ==================== Builders ====================


def build_zip(entries: dict[str, bytes | str]) -> bytes:
    """Zip the given entries into an archive."""
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def build_database(setup: Callable[[sqlite3.Connection], None]) -> bytes:
    """Create a SQLite file, let ``setup`` fill it and return its bytes."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        db_path = Path(tmp_dir) / "collection.db"
        conn = sqlite3.connect(db_path)
        try:
            setup(conn)
            conn.commit()
        finally:
            conn.close()
        return db_path.read_bytes()


def _create_notes_and_cards(
    conn: sqlite3.Connection,
    notes: list[NoteRow],
    cards: list[CardRow],
) -> None:
    conn.execute("""
        CREATE TABLE notes (
            id INTEGER PRIMARY KEY,
            guid TEXT,
            mid INTEGER,
            mod INTEGER,
            usn INTEGER,
            tags TEXT,
            flds TEXT,
            sfld TEXT,
            csum INTEGER,
            flags INTEGER,
            data TEXT
        )
    """)
    for note_id, mid, tags, fields in notes:
        conn.execute(
            """
            INSERT INTO notes (id, guid, mid, mod, usn, tags, flds, sfld, csum, flags, data)
            VALUES (?, ?, ?, 0, 0, ?, ?, ?, 0, 0, '')
            """,
            (note_id, f"guid{note_id}", mid, tags, "\x1f".join(fields), fields[0] if fields else ""),
        )

    conn.execute("""
        CREATE TABLE cards (
            id INTEGER PRIMARY KEY,
            nid INTEGER,
            did INTEGER,
            ord INTEGER,
            mod INTEGER,
            usn INTEGER,
            type INTEGER,
            queue INTEGER,
            due INTEGER,
            ivl INTEGER,
            factor INTEGER,
            reps INTEGER,
            lapses INTEGER,
            left INTEGER,
            odue INTEGER,
            odid INTEGER,
            flags INTEGER,
            data TEXT
        )
    """)
    for card_id, nid, did, ord_ in cards:
        conn.execute(
            """
            INSERT INTO cards (id, nid, did, ord, mod, usn, type, queue, due, ivl,
                               factor, reps, lapses, left, odue, odid, flags, data)
            VALUES (?, ?, ?, ?, 0, 0, 0, 0, 1, 0, 2500, 0, 0, 0, 0, 0, 0, '')
            """,
            (card_id, nid, did, ord_),
        )


def _package(
    db_filename: str,
    db_content: bytes,
    media: dict[str, str] | bytes | None,
    media_files: dict[str, bytes] | None,
) -> bytes:
    entries: dict[str, bytes | str] = {db_filename: db_content}
    if media is not None:
        entries["media"] = media if isinstance(media, bytes) else json.dumps(media)
    entries.update(media_files or {})
    return build_zip(entries)


def build_legacy_apkg(
    notes: list[NoteRow] | None = None,
    cards: list[CardRow] | None = None,
    models: dict[str, Any] | str | None = None,
    decks: dict[str, Any] | str | None = None,
    media: dict[str, str] | bytes | None = None,
    media_files: dict[str, bytes] | None = None,
    db_filename: str = "collection.anki2",
) -> bytes:
    """Build a package whose note types and decks are JSON in ``col``.

    Args:
        notes: Note rows; defaults to one Basic note.
        cards: Card rows; defaults to one card of the first note.
        models: ``col.models`` as a dict, or a raw string to store as-is.
        decks: ``col.decks`` as a dict, or a raw string to store as-is.
        media: Media manifest; a dict is JSON encoded, bytes are stored as-is.
        media_files: Numbered media entries.
        db_filename: Name of the database entry.

    Returns:
        Package bytes.
    """
    notes = DEFAULT_NOTES if notes is None else notes
    cards = DEFAULT_CARDS if cards is None else cards
    models = LEGACY_MODELS if models is None else models
    decks = LEGACY_DECKS if decks is None else decks

    def setup(conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE col (
                id INTEGER PRIMARY KEY,
                crt INTEGER,
                mod INTEGER,
                scm INTEGER,
                ver INTEGER,
                dty INTEGER,
                usn INTEGER,
                ls INTEGER,
                conf TEXT,
                models TEXT,
                decks TEXT,
                dconf TEXT,
                tags TEXT
            )
        """)
        conn.execute(
            """
            INSERT INTO col (id, crt, mod, scm, ver, dty, usn, ls, conf, models, decks, dconf, tags)
            VALUES (1, 0, 0, 0, 11, 0, 0, 0, '{}', ?, ?, '{}', '{}')
            """,
            (
                models if isinstance(models, str) else json.dumps(models),
                decks if isinstance(decks, str) else json.dumps(decks),
            ),
        )
        _create_notes_and_cards(conn, notes, cards)

    return _package(db_filename, build_database(setup), media, media_files)


def build_modern_apkg(
    notes: list[NoteRow] | None = None,
    cards: list[CardRow] | None = None,
    notetypes: list[tuple[int, str, list[str]]] | None = None,
    decks: list[tuple[int, str]] | None = None,
    media: dict[str, str] | bytes | None = None,
    media_files: dict[str, bytes] | None = None,
    with_decks_table: bool = True,
    db_filename: str = "collection.anki21",
) -> bytes:
    """Build a package with normalized ``notetypes``, ``fields`` and ``decks`` tables.

    Args:
        notes: Note rows; defaults to one Basic note.
        cards: Card rows; defaults to one card of the first note.
        notetypes: (id, name, field names) per note type.
        decks: (id, name) per deck; nesting levels joined with ``\\x1f``.
        media: Media manifest; a dict is JSON encoded, bytes are stored as-is.
        media_files: Numbered media entries.
        with_decks_table: Whether to create the ``decks`` table.
        db_filename: Name of the database entry.

    Returns:
        Package bytes.
    """
    notes = DEFAULT_NOTES if notes is None else notes
    cards = DEFAULT_CARDS if cards is None else cards
    notetypes = MODERN_NOTETYPES if notetypes is None else notetypes
    decks = MODERN_DECKS if decks is None else decks

    def setup(conn: sqlite3.Connection) -> None:
        # Modern exports keep a stub col table next to the normalized ones
        conn.execute("CREATE TABLE col (id INTEGER PRIMARY KEY, ver INTEGER)")
        conn.execute("INSERT INTO col (id, ver) VALUES (1, 18)")
        conn.execute("CREATE TABLE notetypes (id INTEGER PRIMARY KEY, name TEXT, config BLOB)")
        conn.execute(
            "CREATE TABLE fields (ntid INTEGER, ord INTEGER, name TEXT, config BLOB, "
            "PRIMARY KEY (ntid, ord))"
        )
        for ntid, name, field_names in notetypes:
            conn.execute("INSERT INTO notetypes (id, name, config) VALUES (?, ?, x'')", (ntid, name))
            for ordinal, field_name in enumerate(field_names):
                conn.execute(
                    "INSERT INTO fields (ntid, ord, name, config) VALUES (?, ?, ?, x'')",
                    (ntid, ordinal, field_name),
                )

        if with_decks_table:
            conn.execute("CREATE TABLE decks (id INTEGER PRIMARY KEY, name TEXT, common BLOB)")
            conn.executemany(
                "INSERT INTO decks (id, name, common) VALUES (?, ?, x'')",
                decks,
            )

        _create_notes_and_cards(conn, notes, cards)

    return _package(db_filename, build_database(setup), media, media_files)
