"""Unit tests for field mapping onto front / back / extra."""

from apkg_ingest.core.config import ImportConfig
from apkg_ingest.modules.apkg.field_mapping import (
    DEFAULT_RULES,
    FieldMappingRules,
    map_fields,
    name_fields,
)
from apkg_ingest.modules.apkg.models import NoteField, NoteType, RawNote


def _model(*names: str) -> NoteType:
    return NoteType(
        id=1,
        name="Model",
        fields=tuple(NoteField(name=name, ordinal=i) for i, name in enumerate(names)),
    )


def _note(*values: str) -> RawNote:
    return RawNote(id=10, guid="g", model_id=1, field_values=list(values))


class TestNameFields:
    """Tests for name_fields."""

    def test_lower_cases_and_zips_by_position(self):
        named = name_fields(_note("q", "a"), _model("Front", " Back "))

        assert named == {"front": "q", "back": "a"}

    def test_missing_values_read_as_empty(self):
        assert name_fields(_note("q"), _model("Front", "Back")) == {"front": "q", "back": ""}

    def test_first_duplicate_wins(self):
        assert name_fields(_note("1", "2"), _model("Text", "TEXT")) == {"text": "1"}


class TestMapFields:
    """Tests for map_fields."""

    def test_basic_front_back(self):
        mapped = map_fields(_note("Question", "Answer"), _model("Front", "Back"))

        assert mapped.front == "Question"
        assert mapped.back == "Answer"
        assert mapped.extra == ""

    def test_candidates_checked_in_order(self):
        mapped = map_fields(
            _note("answer side", "q", "extra side"),
            _model("Answer", "Question", "Extra"),
        )

        assert mapped.front == "q"
        # "extra" is listed before "answer"
        assert mapped.back == "extra side"

    def test_empty_candidate_is_skipped(self):
        mapped = map_fields(_note("", "from front"), _model("Text", "Front"))

        assert mapped.front == "from front"

    def test_positional_fallback(self):
        mapped = map_fields(_note("first", "second"), _model("Term", "Definition"))

        assert mapped.front == "first"
        assert mapped.back == "second"

    def test_positional_fallback_with_too_few_values(self):
        mapped = map_fields(_note("only"), _model("Term", "Definition"))

        assert mapped.front == "only"
        assert mapped.back == ""

    def test_positional_fallback_uses_values_beyond_model(self):
        mapped = map_fields(_note("first", "second"), _model("Term"))

        assert mapped.back == "second"

    def test_extra_fields_joined_in_declared_order(self):
        mapped = map_fields(
            _note("{{c1::x}}", "", "FA notes", "  ", "Pathoma notes"),
            _model("Text", "Extra", "First Aid", "Lecture Notes", "Pathoma"),
        )

        assert mapped.extra == "Pathoma notes\n\n---\n\nFA notes"

    def test_rules_from_config(self):
        config = ImportConfig(
            front_field_candidates=["Prompt"],
            back_field_candidates=["Reply"],
            extra_field_candidates=["Notes"],
            extra_divider=" | ",
        )
        rules = FieldMappingRules.from_config(config)

        mapped = map_fields(_note("r", "p", "n"), _model("Reply", "Prompt", "Notes"), rules)

        assert rules.front_candidates == ("prompt",)
        assert mapped.front == "p"
        assert mapped.back == "r"
        assert mapped.extra == "n"

    def test_default_rules_match_default_config(self):
        assert FieldMappingRules.from_config(ImportConfig()) == DEFAULT_RULES
