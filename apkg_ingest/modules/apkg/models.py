"""Records read out of an Anki collection.

These are the internal, per-invocation structures the collection adapters
produce and the note transformer consumes. The caller-facing payloads live
in ``schemas``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .archive import ArchiveReader
    from .media import MediaResolver

# Field separator in the notes table
FIELD_SEPARATOR = "\x1f"


class SchemaGeneration(StrEnum):
    """Supported layouts of the embedded collection database."""

    LEGACY = "legacy"
    MODERN = "modern"


@dataclass(frozen=True)
class NoteField:
    """One named field of a note type.

    Attributes:
        name: Field name as shown in Anki.
        ordinal: Position of the field inside the note's field list.
    """

    name: str
    ordinal: int


@dataclass(frozen=True)
class NoteType:
    """Note type (model) shared by many notes.

    Attributes:
        id: Note type ID.
        name: Note type name.
        fields: Fields ordered by ordinal.
    """

    id: int
    name: str
    fields: tuple[NoteField, ...] = ()

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass(frozen=True)
class Deck:
    """Deck as stored in the collection.

    Attributes:
        id: Deck ID.
        name: Full deck name, nested levels joined with ``::``.
    """

    id: int
    name: str


@dataclass
class RawNote:
    """Note row exactly as stored, before field names are attached.

    Attributes:
        id: Note ID.
        guid: Globally unique note ID assigned by Anki.
        model_id: ID of the note type.
        modified_at: Modification timestamp (seconds).
        tags: Tags in stored order, without duplicates.
        field_values: Positional field values.
        sort_field: Sort field value.
    """

    id: int
    guid: str
    model_id: int
    modified_at: int = 0
    tags: list[str] = field(default_factory=list)
    field_values: list[str] = field(default_factory=list)
    sort_field: str = ""

    def value_at(self, position: int) -> str:
        """Return the field value at ``position`` or an empty string."""
        if 0 <= position < len(self.field_values):
            return self.field_values[position]
        return ""


@dataclass
class RawCard:
    """Card row with its scheduling state; used for counting only.

    Attributes:
        id: Card ID.
        note_id: Owning note ID.
        deck_id: Deck the card lives in.
        ordinal: Template or cloze ordinal within the note.
        type: Card type (new, learning, review, relearning).
        queue: Scheduler queue.
        due: Due date/position.
        interval: Review interval.
        ease_factor: Ease factor.
        reviews: Number of reviews.
        lapses: Number of lapses.
    """

    id: int
    note_id: int
    deck_id: int
    ordinal: int = 0
    type: int = 0
    queue: int = 0
    due: int = 0
    interval: int = 0
    ease_factor: int = 0
    reviews: int = 0
    lapses: int = 0


@dataclass
class ParsedCollection:
    """Everything extracted from one .apkg package.

    Owns the archive handle so media can still be read lazily after the
    database has been closed. Use as a context manager or call ``close()``.

    Attributes:
        collection_label: Human-readable label of the import.
        schema_generation: Layout the database was read with.
        notes: Raw notes ordered by ID.
        cards: Raw cards ordered by ID.
        models: Note types by ID.
        decks: Decks by ID.
        media: Lazy resolver for media attachments.
    """

    collection_label: str
    schema_generation: SchemaGeneration
    notes: list[RawNote]
    cards: list[RawCard]
    models: dict[int, NoteType]
    decks: dict[int, Deck]
    media: MediaResolver
    archive: ArchiveReader | None = field(default=None, repr=False)

    @property
    def media_index(self) -> dict[str, str]:
        return self.media.index

    def cards_per_note(self) -> dict[int, int]:
        """Count physical cards for every note ID."""
        counts: dict[int, int] = {}
        for card in self.cards:
            counts[card.note_id] = counts.get(card.note_id, 0) + 1
        return counts

    def close(self) -> None:
        if self.archive is not None:
            self.archive.close()

    def __enter__(self) -> ParsedCollection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
