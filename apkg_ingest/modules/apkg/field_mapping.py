"""Mapping of positional note fields onto front / back / extra.

Anki note types name their fields freely, so the mapping is a heuristic:
each role has an ordered list of field name synonyms that is tried against
the lower-cased field names, with a positional fallback for front and back.
"""

from __future__ import annotations

from dataclasses import dataclass

from apkg_ingest.core.config import ImportConfig

from .models import NoteType, RawNote


@dataclass(frozen=True)
class FieldMappingRules:
    """Ordered field name synonyms per card role.

    Attributes:
        front_candidates: Names tried for the question side.
        back_candidates: Names tried for the answer side.
        extra_candidates: Supplementary fields, concatenated in this order.
        extra_divider: Separator placed between supplementary fields.
        front_position: Positional fallback for the question side.
        back_position: Positional fallback for the answer side.
    """

    front_candidates: tuple[str, ...] = ("text", "front", "question", "cloze")
    back_candidates: tuple[str, ...] = ("extra", "back", "answer", "extra / explanation")
    extra_candidates: tuple[str, ...] = (
        "lecture notes",
        "missed questions",
        "pathoma",
        "boards and beyond",
        "first aid",
    )
    extra_divider: str = "\n\n---\n\n"
    front_position: int = 0
    back_position: int = 1

    @classmethod
    def from_config(cls, config: ImportConfig) -> FieldMappingRules:
        return cls(
            front_candidates=tuple(c.lower() for c in config.front_field_candidates),
            back_candidates=tuple(c.lower() for c in config.back_field_candidates),
            extra_candidates=tuple(c.lower() for c in config.extra_field_candidates),
            extra_divider=config.extra_divider,
        )


DEFAULT_RULES = FieldMappingRules()


@dataclass(frozen=True)
class MappedFields:
    """Raw (unsanitized) values chosen for each role."""

    front: str
    back: str
    extra: str
    named: dict[str, str]


def name_fields(note: RawNote, model: NoteType) -> dict[str, str]:
    """Join the model's field names with the note's values by position.

    Missing positions read as empty strings; values beyond the model's
    field count are left out. Names are lower-cased and stripped; when two
    fields collapse to the same name the first one wins.
    """
    named: dict[str, str] = {}
    for position, name in enumerate(model.field_names):
        key = name.strip().lower()
        if key not in named:
            named[key] = note.value_at(position)
    return named


def _first_present(named: dict[str, str], candidates: tuple[str, ...]) -> str:
    for candidate in candidates:
        value = named.get(candidate)
        if value:
            return value
    return ""


def map_fields(
    note: RawNote,
    model: NoteType,
    rules: FieldMappingRules = DEFAULT_RULES,
) -> MappedFields:
    """Choose the front, back and extra values of a note.

    Args:
        note: Raw note.
        model: Note type of the note.
        rules: Field name synonyms to apply.

    Returns:
        The chosen raw values plus the full name->value map.
    """
    named = name_fields(note, model)

    front = _first_present(named, rules.front_candidates) or note.value_at(rules.front_position)
    back = _first_present(named, rules.back_candidates) or note.value_at(rules.back_position)

    extras = [
        named[candidate]
        for candidate in rules.extra_candidates
        if named.get(candidate, "").strip()
    ]

    return MappedFields(
        front=front,
        back=back,
        extra=rules.extra_divider.join(extras),
        named=named,
    )
