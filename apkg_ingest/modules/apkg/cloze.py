"""Cloze deletion markup: ``{{c1::answer}}`` and ``{{c1::answer::hint}}``."""

import re

CLOZE_PATTERN = re.compile(r"\{\{c(\d+)::(.+?)(?:::([^}]+))?\}\}", re.DOTALL)

BLANK_MARKER = "[...]"


def has_cloze(text: str) -> bool:
    return bool(text) and CLOZE_PATTERN.search(text) is not None


def cloze_indices(text: str) -> list[int]:
    """Return the distinct cloze numbers of ``text`` in ascending order."""
    found: set[int] = set()
    for match in CLOZE_PATTERN.finditer(text or ""):
        found.add(int(match.group(1)))
    return sorted(found)


def _blank(match: re.Match[str]) -> str:
    hint = match.group(3)
    if hint and hint.strip():
        return f"({hint.strip()})"
    return BLANK_MARKER


def _reveal(match: re.Match[str]) -> str:
    return match.group(2)


def render_question(text: str) -> str:
    """Blank every cloze span, whatever its number.

    Spans with a hint show the hint in parentheses, the others the
    ``[...]`` marker.
    """
    return CLOZE_PATTERN.sub(_blank, text)


def render_answer(text: str) -> str:
    """Replace every cloze span with its answer."""
    return CLOZE_PATTERN.sub(_reveal, text)
