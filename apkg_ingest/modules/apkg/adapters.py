"""Collection adapters for the two supported database layouts.

Legacy collections (Anki 2.0 up to 2.1.27) keep note types and decks as JSON
blobs in the single row of the ``col`` table:
- col: Collection metadata (models, decks, dconf, tags as JSON)

Modern collections (Anki 2.1.28+) normalize them into tables:
- notetypes: id, name, config
- fields: ntid, ord, name, config
- decks: id, name, ...

The ``notes`` and ``cards`` tables are the same in both layouts, so they are
read by the shared base class.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from apkg_ingest.core.config import ImportConfig
from apkg_ingest.shared.errors import safe_with_fallback

from .models import (
    FIELD_SEPARATOR,
    Deck,
    NoteField,
    NoteType,
    RawCard,
    RawNote,
    SchemaGeneration,
)

logger = logging.getLogger(__name__)

# Modern deck names separate nesting levels with the unit separator
MODERN_DECK_SEPARATOR = "\x1f"
DECK_SEPARATOR = "::"


def select_collection_label(
    decks: Iterable[Deck],
    *,
    default_deck_name: str = "Default",
    placeholder: str = "Imported Deck",
) -> str:
    """Pick the most specific deck name as the label of the import.

    Heuristic: nested decks have longer names, so the longest name that is
    not the default deck wins. Ties go to the deck seen first.

    Args:
        decks: Decks of the collection, in ID order.
        default_deck_name: Name of Anki's built-in deck.
        placeholder: Label used when no other deck exists.

    Returns:
        Collection label.
    """
    label = ""
    for deck in decks:
        name = deck.name.strip()
        if not name or name == default_deck_name:
            continue
        if len(name) > len(label):
            label = name
    return label or placeholder


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    return int(value)


def _to_text(value: Any) -> str:
    # Columns declared TEXT can still hold BLOB values
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class CollectionAdapter(ABC):
    """Reads canonical records out of one collection database.

    Attributes:
        conn: Open connection to the collection database.
        config: Import settings.
    """

    generation: SchemaGeneration

    def __init__(self, conn: sqlite3.Connection, config: ImportConfig | None = None) -> None:
        self.conn = conn
        self.config = config or ImportConfig()

    @abstractmethod
    def load_models(self) -> dict[int, NoteType]:
        """Load note types keyed by ID."""

    @abstractmethod
    def load_decks(self) -> dict[int, Deck]:
        """Load decks keyed by ID."""

    def collection_label(self, decks: dict[int, Deck]) -> str:
        ordered = [decks[deck_id] for deck_id in sorted(decks)]
        return select_collection_label(
            ordered,
            default_deck_name=self.config.default_deck_name,
            placeholder=self.config.placeholder_label,
        )

    def load_notes(self) -> list[RawNote]:
        """Load every note row.

        Tags are a space-separated string and fields are joined with the
        unit separator. A malformed row is logged and skipped.
        """
        notes: list[RawNote] = []
        cursor = self.conn.execute(
            "SELECT id, guid, mid, mod, tags, flds, sfld FROM notes ORDER BY id"
        )

        for row in cursor:
            try:
                notes.append(self._note_from_row(row))
            except (TypeError, ValueError) as e:
                logger.warning("Failed to read note %s: %s", row[0], e)

        return notes

    def _note_from_row(self, row: sqlite3.Row | tuple[Any, ...]) -> RawNote:
        note_id, guid, model_id, modified_at, tags, flds, sfld = tuple(row)
        tag_list = list(dict.fromkeys(_to_text(tags).split()))

        return RawNote(
            id=int(note_id),
            guid=_to_text(guid),
            model_id=int(model_id),
            modified_at=_to_int(modified_at),
            tags=tag_list,
            field_values=_to_text(flds).split(FIELD_SEPARATOR),
            sort_field=_to_text(sfld),
        )

    def load_cards(self) -> list[RawCard]:
        """Load every card row (scheduling columns are copied, not interpreted)."""
        cards: list[RawCard] = []
        cursor = self.conn.execute(
            """
            SELECT id, nid, did, ord, type, queue, due, ivl, factor, reps, lapses
            FROM cards
            ORDER BY id
            """
        )

        for row in cursor:
            try:
                card_id, nid, did, ord_, type_, queue, due, ivl, factor, reps, lapses = tuple(row)
                cards.append(
                    RawCard(
                        id=int(card_id),
                        note_id=int(nid),
                        deck_id=_to_int(did),
                        ordinal=_to_int(ord_),
                        type=_to_int(type_),
                        queue=_to_int(queue),
                        due=_to_int(due),
                        interval=_to_int(ivl),
                        ease_factor=_to_int(factor),
                        reviews=_to_int(reps),
                        lapses=_to_int(lapses),
                    )
                )
            except (TypeError, ValueError) as e:
                logger.warning("Failed to read card %s: %s", row[0], e)

        return cards


class LegacyCollectionAdapter(CollectionAdapter):
    """Collection storing note types and decks as JSON in ``col``."""

    generation = SchemaGeneration.LEGACY

    def __init__(self, conn: sqlite3.Connection, config: ImportConfig | None = None) -> None:
        super().__init__(conn, config)
        self._blobs: tuple[str | None, str | None] | None = None

    def _collection_blobs(self) -> tuple[str | None, str | None]:
        if self._blobs is None:
            try:
                row = self.conn.execute("SELECT models, decks FROM col LIMIT 1").fetchone()
            except sqlite3.DatabaseError as e:
                logger.warning("Failed to read collection table: %s", e)
                row = None

            if row is None:
                logger.warning("Collection table is empty, no note types or decks available")
                self._blobs = (None, None)
            else:
                self._blobs = (row[0], row[1])
        return self._blobs

    def load_models(self) -> dict[int, NoteType]:
        models_blob, _ = self._collection_blobs()
        return _decode_models(models_blob)

    def load_decks(self) -> dict[int, Deck]:
        _, decks_blob = self._collection_blobs()
        return _decode_decks(decks_blob)


@safe_with_fallback(default_factory=dict)
def _decode_models(blob: str | bytes | None) -> dict[int, NoteType]:
    """Decode the ``col.models`` JSON object into note types."""
    if not blob:
        return {}

    models_json: dict[str, Any] = json.loads(blob)
    models: dict[int, NoteType] = {}

    for model_id, model_data in models_json.items():
        flds = sorted(
            model_data.get("flds") or [],
            key=lambda f: _to_int(f.get("ord")),
        )
        models[int(model_id)] = NoteType(
            id=int(model_id),
            name=model_data.get("name") or "Unknown",
            fields=tuple(
                NoteField(name=f.get("name", ""), ordinal=_to_int(f.get("ord"), index))
                for index, f in enumerate(flds)
            ),
        )

    return models


@safe_with_fallback(default_factory=dict)
def _decode_decks(blob: str | bytes | None) -> dict[int, Deck]:
    """Decode the ``col.decks`` JSON object into decks."""
    if not blob:
        return {}

    decks_json: dict[str, Any] = json.loads(blob)
    return {
        int(deck_id): Deck(id=int(deck_id), name=deck_data.get("name") or "")
        for deck_id, deck_data in decks_json.items()
    }


class ModernCollectionAdapter(CollectionAdapter):
    """Collection with normalized ``notetypes``, ``fields`` and ``decks`` tables."""

    generation = SchemaGeneration.MODERN

    def __init__(
        self,
        conn: sqlite3.Connection,
        config: ImportConfig | None = None,
        *,
        has_decks_table: bool = True,
    ) -> None:
        super().__init__(conn, config)
        self.has_decks_table = has_decks_table

    @safe_with_fallback(default_factory=dict)
    def load_models(self) -> dict[int, NoteType]:
        models: dict[int, NoteType] = {}

        for model_id, name in self.conn.execute("SELECT id, name FROM notetypes").fetchall():
            field_rows = self.conn.execute(
                "SELECT name, ord FROM fields WHERE ntid = ? ORDER BY ord",
                (model_id,),
            ).fetchall()
            models[int(model_id)] = NoteType(
                id=int(model_id),
                name=_to_text(name) or "Unknown",
                fields=tuple(
                    NoteField(name=_to_text(field_name), ordinal=_to_int(ordinal))
                    for field_name, ordinal in field_rows
                ),
            )

        return models

    @safe_with_fallback(default_factory=dict)
    def load_decks(self) -> dict[int, Deck]:
        if not self.has_decks_table:
            return {}

        return {
            int(deck_id): Deck(
                id=int(deck_id),
                name=_to_text(name).replace(MODERN_DECK_SEPARATOR, DECK_SEPARATOR),
            )
            for deck_id, name in self.conn.execute("SELECT id, name FROM decks").fetchall()
        }
