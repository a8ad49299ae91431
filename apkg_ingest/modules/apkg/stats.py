"""Summary counts of an import for preview UIs."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .cloze import has_cloze
from .models import ParsedCollection, RawNote
from .schemas import ImportStats, NormalizedFlashcard
from .transformer import TransformReport

DEFAULT_TAG_SAMPLE_SIZE = 50


def _tags_in_order(tag_lists: Iterable[Iterable[str]]) -> list[str]:
    seen: dict[str, None] = {}
    for tags in tag_lists:
        for tag in tags:
            seen.setdefault(tag, None)
    return list(seen)


def compute_stats(
    collection: ParsedCollection,
    flashcards: Sequence[NormalizedFlashcard] | None = None,
    report: TransformReport | None = None,
    tag_sample_size: int = DEFAULT_TAG_SAMPLE_SIZE,
) -> ImportStats:
    """Summarize a parsed package.

    With ``flashcards`` the counts describe what the transformation
    produced. Without them only the raw notes are inspected: a note counts
    when its note type resolves, and it is a cloze note when any of its
    fields holds cloze markup.

    Args:
        collection: Parsed package.
        flashcards: Flashcards produced from the package, if already known.
        report: Counters of the transformation run.
        tag_sample_size: Maximum number of tags in the sample.

    Returns:
        Import stats.
    """
    if flashcards is not None:
        counted_notes: dict[int, bool] = {}
        for card in flashcards:
            is_cloze = card.cloze_index is not None
            counted_notes[card.source_note_id] = counted_notes.get(card.source_note_id, False) or is_cloze
        card_count = len(flashcards)
        cloze_notes = sum(1 for is_cloze in counted_notes.values() if is_cloze)

        seen_notes: set[int] = set()
        tag_lists: list[list[str]] = []
        for card in flashcards:
            if card.source_note_id not in seen_notes:
                seen_notes.add(card.source_note_id)
                tag_lists.append(card.tags)
        all_tags = _tags_in_order(tag_lists)
    else:
        resolved: list[RawNote] = [
            note for note in collection.notes if note.model_id in collection.models
        ]
        counted_notes = {note.id: any(has_cloze(v) for v in note.field_values) for note in resolved}
        cloze_notes = sum(1 for is_cloze in counted_notes.values() if is_cloze)
        per_note = collection.cards_per_note()
        card_count = sum(per_note.get(note.id, 0) for note in resolved)
        all_tags = _tags_in_order(note.tags for note in resolved)

    note_count = len(counted_notes)

    if report is not None:
        skipped_missing_model = report.skipped_missing_model
        failed_notes = report.failed
    else:
        skipped_missing_model = sum(
            1 for note in collection.notes if note.model_id not in collection.models
        )
        failed_notes = 0

    return ImportStats(
        collection_label=collection.collection_label,
        note_count=note_count,
        card_count=card_count,
        media_count=len(collection.media),
        unique_tag_count=len(all_tags),
        tag_sample=all_tags[: max(0, tag_sample_size)],
        cloze_note_count=cloze_notes,
        regular_note_count=note_count - cloze_notes,
        total_raw_notes=len(collection.notes),
        raw_card_count=len(collection.cards),
        skipped_missing_model=skipped_missing_model,
        failed_notes=failed_notes,
        schema_generation=collection.schema_generation.value,
    )
