"""Transformation of raw notes into normalized flashcards.

``transform_note`` turns one note into its flashcards and has no side
effects. ``NoteTransformer`` drives it over a whole collection in bounded
steps so a host can interleave other work, report progress or stop early.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from apkg_ingest.shared.logging import log_import_progress, log_note_skipped

from .cloze import cloze_indices, render_answer, render_question
from .field_mapping import DEFAULT_RULES, FieldMappingRules, map_fields
from .models import NoteType, ParsedCollection, RawNote
from .sanitizer import extract_media_references, html_to_text
from .schemas import NormalizedFlashcard

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_INTERVAL = 500
TRANSFORM_STAGE = "transforming"

ProgressCallback = Callable[[int, int, str], None]


def collect_media_references(note: RawNote) -> list[str]:
    """Image file names referenced by any field of the note, first-seen order."""
    seen: dict[str, None] = {}
    for value in note.field_values:
        for filename in extract_media_references(value):
            seen.setdefault(filename, None)
    return list(seen)


def transform_note(
    note: RawNote,
    model: NoteType,
    collection_label: str,
    rules: FieldMappingRules = DEFAULT_RULES,
) -> list[NormalizedFlashcard]:
    """Turn one note into its flashcards.

    A note whose front holds cloze deletions yields one card per distinct
    cloze number, in ascending order. Any other note yields a single card.

    Args:
        note: Raw note.
        model: Note type the note refers to.
        collection_label: Label stamped on every card.
        rules: Field name synonyms.

    Returns:
        Flashcards of the note.
    """
    mapped = map_fields(note, model, rules)
    media = collect_media_references(note)
    extra = html_to_text(mapped.extra) or None
    tags = list(note.tags)

    indices = cloze_indices(mapped.front)
    if indices:
        # Every span is blanked on the question side, whatever its number
        front = html_to_text(render_question(mapped.front))
        back = html_to_text(render_answer(mapped.front))
        return [
            NormalizedFlashcard(
                front=front,
                back=back,
                extra=extra,
                tags=list(tags),
                referenced_media=list(media),
                cloze_index=index,
                source_note_id=note.id,
                collection_label=collection_label,
            )
            for index in indices
        ]

    return [
        NormalizedFlashcard(
            front=html_to_text(mapped.front),
            back=html_to_text(mapped.back),
            extra=extra,
            tags=tags,
            referenced_media=media,
            source_note_id=note.id,
            collection_label=collection_label,
        )
    ]


@dataclass
class TransformReport:
    """Counters of a transformation run.

    Attributes:
        processed: Notes looked at so far.
        emitted: Flashcards produced so far.
        skipped_missing_model: Notes whose note type is unknown.
        failed: Notes whose transformation raised.
        failed_note_ids: IDs of the failed notes.
        missing_model_ids: Distinct unknown note type IDs.
    """

    processed: int = 0
    emitted: int = 0
    skipped_missing_model: int = 0
    failed: int = 0
    failed_note_ids: list[int] = field(default_factory=list)
    missing_model_ids: set[int] = field(default_factory=set)

    def snapshot(self) -> TransformReport:
        return replace(
            self,
            failed_note_ids=list(self.failed_note_ids),
            missing_model_ids=set(self.missing_model_ids),
        )


@dataclass
class TransformProgress:
    """Outcome of one ``NoteTransformer.step`` call."""

    current: int
    total: int
    stage: str
    done: bool
    emitted_in_step: int
    report: TransformReport

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return self.current / self.total * 100


class NoteTransformer:
    """Resumable transformation of every note of a collection.

    Example:
        transformer = NoteTransformer(collection, progress_callback=on_progress)
        while not transformer.done:
            transformer.step(200)
        cards = transformer.flashcards
    """

    def __init__(
        self,
        collection: ParsedCollection,
        rules: FieldMappingRules | None = None,
        progress_callback: ProgressCallback | None = None,
        progress_interval: int | None = None,
    ) -> None:
        """Prepare a run over ``collection``.

        Args:
            collection: Parsed package.
            rules: Field name synonyms; defaults to the built-in ones.
            progress_callback: Called with (current, total, stage).
            progress_interval: Notes between two progress callbacks.
        """
        self._collection = collection
        self._rules = rules or DEFAULT_RULES
        self._progress_callback = progress_callback
        self._progress_interval = max(1, progress_interval or DEFAULT_PROGRESS_INTERVAL)

        self._position = 0
        self._total = len(collection.notes)
        self._flashcards: list[NormalizedFlashcard] = []
        self._report = TransformReport()
        self._completion_reported = False

    @property
    def flashcards(self) -> list[NormalizedFlashcard]:
        return self._flashcards

    @property
    def report(self) -> TransformReport:
        return self._report

    @property
    def done(self) -> bool:
        return self._position >= self._total

    @property
    def total(self) -> int:
        return self._total

    def step(self, limit: int) -> TransformProgress:
        """Process at most ``limit`` further notes.

        Args:
            limit: Maximum number of notes to process in this call.

        Returns:
            Progress after the step.
        """
        emitted_before = len(self._flashcards)
        end = min(self._total, self._position + max(0, limit))

        while self._position < end:
            note = self._collection.notes[self._position]
            self._position += 1
            self._process(note)

            if self._position % self._progress_interval == 0 and self._position < self._total:
                self._notify(self._position)

        if self.done and not self._completion_reported:
            self._completion_reported = True
            self._notify(self._position)

        return TransformProgress(
            current=self._position,
            total=self._total,
            stage=TRANSFORM_STAGE,
            done=self.done,
            emitted_in_step=len(self._flashcards) - emitted_before,
            report=self._report.snapshot(),
        )

    def run(self) -> list[NormalizedFlashcard]:
        """Process every remaining note and return all flashcards."""
        while not self.done:
            self.step(self._progress_interval)
        if not self._completion_reported:
            # Empty collection: nothing was stepped
            self.step(0)
        return self._flashcards

    def _process(self, note: RawNote) -> None:
        self._report.processed += 1

        model = self._collection.models.get(note.model_id)
        if model is None:
            self._report.skipped_missing_model += 1
            self._report.missing_model_ids.add(note.model_id)
            log_note_skipped(note.id, "missing_model", model_id=note.model_id)
            return

        try:
            cards = transform_note(note, model, self._collection.collection_label, self._rules)
        except Exception as e:
            logger.warning("Failed to transform note %s: %s", note.id, e)
            self._report.failed += 1
            self._report.failed_note_ids.append(note.id)
            log_note_skipped(note.id, "transform_failed", model_id=note.model_id)
            return

        self._flashcards.extend(cards)
        self._report.emitted += len(cards)

    def _notify(self, current: int) -> None:
        log_import_progress(current, self._total, stage=TRANSFORM_STAGE)
        if self._progress_callback is not None:
            self._progress_callback(current, self._total, TRANSFORM_STAGE)
