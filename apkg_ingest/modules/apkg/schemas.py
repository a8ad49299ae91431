"""Pydantic schemas handed to the caller of the import pipeline."""

from enum import StrEnum

from pydantic import Field

from apkg_ingest.shared.schemas import BaseSchema


class ImportMode(StrEnum):
    """What the caller wants back from an import run."""

    PREVIEW = "preview"
    COMMIT = "commit"


class ImportStage(StrEnum):
    """Stages reported by the progress stream."""

    PARSING = "parsing"
    TRANSFORMING = "transforming"
    AGGREGATING = "aggregating"
    COMPLETE = "complete"
    ERROR = "error"


# ==================== Flashcard Schemas ====================


class NormalizedFlashcard(BaseSchema):
    """One logical flashcard produced from an Anki note.

    Attributes:
        front: Question side as plain text.
        back: Answer side as plain text.
        extra: Supplementary notes, if the note had any.
        tags: Note tags.
        referenced_media: Media file names referenced by the note.
        cloze_index: Cloze number this card tests, for cloze notes.
        source_note_id: ID of the originating Anki note.
        collection_label: Label of the imported collection.
    """

    front: str = Field(description="Question side as plain text")
    back: str = Field(description="Answer side as plain text")
    extra: str | None = Field(default=None, description="Supplementary notes")
    tags: list[str] = Field(default_factory=list, description="Note tags")
    referenced_media: list[str] = Field(
        default_factory=list,
        description="Media file names referenced by the note",
    )
    cloze_index: int | None = Field(
        default=None,
        description="Cloze number this card tests",
    )
    source_note_id: int = Field(description="ID of the originating Anki note")
    collection_label: str = Field(description="Label of the imported collection")


class PreviewFlashcard(BaseSchema):
    """Truncated flashcard for the preview step.

    Attributes:
        id: Positional preview identifier.
        front: Truncated question side.
        back: Truncated answer side.
        extra: Truncated supplementary notes.
        tags: First tags of the note.
        cloze_index: Cloze number this card tests.
    """

    id: str = Field(description="Positional preview identifier")
    front: str = Field(description="Truncated question side")
    back: str = Field(description="Truncated answer side")
    extra: str | None = Field(default=None, description="Truncated supplementary notes")
    tags: list[str] = Field(default_factory=list, description="First tags of the note")
    cloze_index: int | None = Field(default=None, description="Cloze number this card tests")


# ==================== Stats Schemas ====================


class ImportStats(BaseSchema):
    """Summary of an import for preview UIs.

    Attributes:
        collection_label: Label of the imported collection.
        note_count: Notes that resolved and produced flashcards.
        card_count: Flashcards produced.
        media_count: Media files bound to archive entries.
        unique_tag_count: Distinct tags across counted notes.
        tag_sample: First tags, capped for display.
        cloze_note_count: Counted notes with cloze markup.
        regular_note_count: Counted notes without cloze markup.
        total_raw_notes: Notes present in the package.
        raw_card_count: Card rows present in the package.
        skipped_missing_model: Notes dropped because their note type is unknown.
        failed_notes: Notes dropped because their transformation failed.
        schema_generation: Database layout the package was read with.
    """

    collection_label: str = Field(description="Label of the imported collection")
    note_count: int = Field(default=0, ge=0, description="Notes that resolved")
    card_count: int = Field(default=0, ge=0, description="Flashcards produced")
    media_count: int = Field(default=0, ge=0, description="Media files available")
    unique_tag_count: int = Field(default=0, ge=0, description="Distinct tags")
    tag_sample: list[str] = Field(default_factory=list, description="First tags")
    cloze_note_count: int = Field(default=0, ge=0, description="Cloze notes")
    regular_note_count: int = Field(default=0, ge=0, description="Non-cloze notes")
    total_raw_notes: int = Field(default=0, ge=0, description="Notes in the package")
    raw_card_count: int = Field(default=0, ge=0, description="Card rows in the package")
    skipped_missing_model: int = Field(
        default=0,
        ge=0,
        description="Notes dropped because their note type is unknown",
    )
    failed_notes: int = Field(
        default=0,
        ge=0,
        description="Notes dropped because their transformation failed",
    )
    schema_generation: str | None = Field(
        default=None,
        description="Database layout the package was read with",
    )


# ==================== Import Schemas ====================


class ImportRequest(BaseSchema):
    """Options of an import run.

    Attributes:
        mode: Preview (stats + first cards) or commit (everything + media).
        preview_limit: Number of preview cards; defaults to the configured value.
    """

    mode: ImportMode = Field(default=ImportMode.PREVIEW, description="Import mode")
    preview_limit: int | None = Field(
        default=None,
        ge=0,
        description="Number of preview cards",
    )


class ImportResult(BaseSchema):
    """Result of an import run.

    Attributes:
        mode: Mode the run was executed in.
        stats: Summary counts.
        flashcards: Every flashcard (commit mode).
        previews: First flashcards, truncated (preview mode).
        media_files: Bytes of referenced media that resolved (commit mode).
        unresolved_media: Referenced media names with no bytes (commit mode).
    """

    mode: ImportMode = Field(description="Mode the run was executed in")
    stats: ImportStats = Field(description="Summary counts")
    flashcards: list[NormalizedFlashcard] = Field(
        default_factory=list,
        description="Every flashcard (commit mode)",
    )
    previews: list[PreviewFlashcard] = Field(
        default_factory=list,
        description="First flashcards, truncated (preview mode)",
    )
    media_files: dict[str, bytes] = Field(
        default_factory=dict,
        description="Bytes of referenced media that resolved",
    )
    unresolved_media: list[str] = Field(
        default_factory=list,
        description="Referenced media names with no bytes",
    )


class ImportProgress(BaseSchema):
    """Progress event of a streamed import.

    Attributes:
        stage: Current import stage.
        progress: Progress percentage (0-100).
        current: Current item being processed.
        total: Total items to process.
        message: Progress message.
        error_code: Error code when the stage is ``error``.
        result: Final result on the ``complete`` event.
    """

    stage: ImportStage = Field(description="Current import stage")
    progress: float = Field(ge=0, le=100, description="Progress percentage")
    current: int = Field(default=0, description="Current item being processed")
    total: int = Field(default=0, description="Total items to process")
    message: str = Field(description="Progress message")
    error_code: str | None = Field(default=None, description="Error code on failure")
    result: ImportResult | None = Field(default=None, description="Final result")
