"""Pytest configuration and fixtures for apkg_ingest tests."""

from collections.abc import Iterator

import pytest

from apkg_ingest.core.config import Settings
from apkg_ingest.modules.apkg.parser import ApkgParser
from apkg_ingest.modules.apkg.service import ImportService
from apkg_ingest.shared.context import trace_id_var
from apkg_ingest.tests.fixtures.apkg_builder import (
    BASIC_MODEL_ID,
    CLOZE_MODEL_ID,
    TEST_DECK_ID,
    build_legacy_apkg,
    build_modern_apkg,
)

# ==================== Settings Fixtures ====================


@pytest.fixture
def settings() -> Settings:
    """Fresh settings, independent from the cached singleton."""
    return Settings()


@pytest.fixture(autouse=True)
def clear_trace_id() -> Iterator[None]:
    """Run every test with an empty trace ID."""
    token = trace_id_var.set("")
    yield
    trace_id_var.reset(token)


# ==================== Service Fixtures ====================


@pytest.fixture
def parser(settings: Settings) -> ApkgParser:
    """Create an ApkgParser instance."""
    return ApkgParser(settings)


@pytest.fixture
def service(settings: Settings) -> ImportService:
    """Create an ImportService instance."""
    return ImportService(settings)


# ==================== Package Fixtures ====================


@pytest.fixture
def mixed_notes() -> list:
    """A Basic note with an image and a Cloze note with a hint."""
    return [
        (
            1,
            BASIC_MODEL_ID,
            "anatomy heart",
            ['What is <b>this</b>?<img src="heart.png">', "The heart"],
        ),
        (
            2,
            CLOZE_MODEL_ID,
            "physiology heart",
            ["{{c1::Paris}} is the capital of {{c2::France::country}}", "Geography"],
        ),
    ]


@pytest.fixture
def mixed_cards() -> list:
    return [
        (1, 1, TEST_DECK_ID, 0),
        (2, 2, TEST_DECK_ID, 0),
        (3, 2, TEST_DECK_ID, 1),
    ]


@pytest.fixture
def legacy_apkg(mixed_notes: list, mixed_cards: list) -> bytes:
    """Legacy package with the mixed notes and one media file."""
    return build_legacy_apkg(
        notes=mixed_notes,
        cards=mixed_cards,
        media={"0": "heart.png"},
        media_files={"0": b"\x89PNG heart"},
    )


@pytest.fixture
def modern_apkg(mixed_notes: list, mixed_cards: list) -> bytes:
    """Modern package with the same content as ``legacy_apkg``."""
    return build_modern_apkg(
        notes=mixed_notes,
        cards=mixed_cards,
        media={"0": "heart.png"},
        media_files={"0": b"\x89PNG heart"},
    )
