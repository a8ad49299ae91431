"""Unit tests for configuration, errors and logging.

Tests cover:
- Settings sections and environment overrides
- AppError code / message generation and serialization
- ExceptionMapper and the safe decorators
- Loguru setup and stdlib interception
"""

import logging
import sqlite3
import zipfile

import pytest
from loguru import logger

from apkg_ingest.core.config import ImportConfig, LoggingConfig, Settings, get_settings
from apkg_ingest.modules.apkg.exceptions import (
    CorruptDatabaseError,
    MissingDatabaseError,
    NotAZipError,
)
from apkg_ingest.shared.context import set_trace_id, trace_id_var
from apkg_ingest.shared.errors import (
    AppError,
    BadRequestError,
    ErrorResponse,
    ExceptionMapper,
    safe,
    safe_with_fallback,
)
from apkg_ingest.shared.logging import (
    InterceptHandler,
    configure_stdlib_loggers,
    get_logger,
    setup_logger,
)

# ==================== Config ====================


class TestSettings:
    """Tests for the settings sections."""

    def test_defaults(self):
        settings = Settings()

        assert settings.importer.placeholder_label == "Imported Deck"
        assert settings.importer.progress_interval == 500
        assert settings.importer.preview_limit == 10
        assert settings.importer.max_upload_bytes == 100 * 1024 * 1024
        assert settings.importer.max_database_bytes == 1024 * 1024 * 1024
        assert settings.importer.allowed_extension == ".apkg"
        assert settings.logging.format == "console"
        assert settings.app.name == "apkg-ingest"

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("IMPORT_PREVIEW_LIMIT", "3")
        monkeypatch.setenv("IMPORT_PLACEHOLDER_LABEL", "Untitled")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert ImportConfig().preview_limit == 3
        assert ImportConfig().placeholder_label == "Untitled"
        assert LoggingConfig().level == "DEBUG"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


# ==================== Errors ====================


class TestAppError:
    """Tests for the error base class."""

    def test_code_and_message_from_class(self):
        error = MissingDatabaseError()

        assert error.code == "MISSING_DATABASE"
        assert error.message.startswith("No Anki database found")
        assert error.status_code == 400
        assert isinstance(error, BadRequestError)

    def test_to_dict_carries_trace_id(self):
        set_trace_id("abc123")

        payload = NotAZipError(details={"value": "12 bytes"}).to_dict()

        assert payload == {
            "error": "NOT_A_ZIP",
            "message": "File is not a valid .apkg (zip) archive.",
            "details": {"value": "12 bytes"},
            "trace_id": "abc123",
        }

    def test_to_response(self):
        response = CorruptDatabaseError(message="broken").to_response()

        assert isinstance(response, ErrorResponse)
        assert response.error == "CORRUPT_DATABASE"
        assert response.message == "broken"

    def test_extra_detail_keys_allowed(self):
        error = AppError(details={"note_id": 5})

        assert error.details == {"note_id": 5}


class TestExceptionMapper:
    """Tests for technical-to-domain mapping."""

    def test_bad_zip(self):
        mapped = ExceptionMapper.map(zipfile.BadZipFile("bad"), "parse")

        assert isinstance(mapped, NotAZipError)
        assert mapped.details["function"] == "parse"

    def test_database_error_subclass(self):
        mapped = ExceptionMapper.map(sqlite3.OperationalError("no such table: notes"), "parse")

        assert isinstance(mapped, CorruptDatabaseError)
        assert "no such table" in mapped.message

    def test_unknown_exception(self):
        try:
            raise KeyError("x")
        except KeyError as e:
            mapped = ExceptionMapper.map(e, "parse")

        assert type(mapped) is AppError
        assert mapped.status_code == 500


class TestSafeDecorators:
    """Tests for safe and safe_with_fallback."""

    def test_safe_maps_technical_errors(self):
        @safe
        def parse() -> None:
            raise zipfile.BadZipFile("truncated")

        with pytest.raises(NotAZipError) as exc_info:
            parse()

        assert isinstance(exc_info.value.__cause__, zipfile.BadZipFile)

    def test_safe_passes_app_errors(self):
        @safe
        def parse() -> None:
            raise MissingDatabaseError()

        with pytest.raises(MissingDatabaseError):
            parse()

    @pytest.mark.asyncio
    async def test_safe_async(self):
        @safe
        async def parse() -> None:
            raise sqlite3.DatabaseError("file is not a database")

        with pytest.raises(CorruptDatabaseError):
            await parse()

    def test_fallback_value(self):
        @safe_with_fallback(fallback=-1)
        def decode() -> int:
            raise ValueError("bad")

        assert decode() == -1

    def test_fallback_factory(self):
        @safe_with_fallback(default_factory=list)
        def decode() -> list:
            raise ValueError("bad")

        first = decode()
        first.append(1)

        assert decode() == []

    def test_fallback_not_used_on_success(self):
        @safe_with_fallback(default_factory=dict)
        def decode() -> dict:
            return {"ok": True}

        assert decode() == {"ok": True}


# ==================== Logging ====================


@pytest.fixture
def captured_logs():
    """Collect loguru records emitted during the test."""
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


class TestLogging:
    """Tests for the loguru setup."""

    def test_setup_logger_console(self):
        setup_logger(Settings())

        assert any(isinstance(h, InterceptHandler) for h in logging.getLogger("apkg_ingest").handlers)

    def test_setup_logger_json(self, monkeypatch: pytest.MonkeyPatch, capsys):
        monkeypatch.setenv("LOG_FORMAT", "json")
        settings = Settings()

        setup_logger(settings)
        logger.info("json line", note_count=3)

        out = capsys.readouterr().out
        assert '"message": "json line"' in out
        assert '"note_count": 3' in out

    def test_stdlib_records_reach_loguru(self, captured_logs: list):
        configure_stdlib_loggers(Settings())

        logging.getLogger("apkg_ingest.modules.apkg.parser").warning("from stdlib %d", 7)

        assert any(r["message"] == "from stdlib 7" for r in captured_logs)

    def test_trace_id_patched_into_records(self):
        captured_logs: list[dict] = []
        setup_logger(Settings())
        handler_id = logger.add(lambda message: captured_logs.append(message.record))
        token = trace_id_var.set("feedface")
        try:
            logger.info("traced")
        finally:
            trace_id_var.reset(token)
            logger.remove(handler_id)

        traced = [r for r in captured_logs if r["message"] == "traced"]
        assert traced
        assert all(r["extra"]["trace_id"] == "feedface" for r in traced)

    def test_get_logger_binds_name(self, captured_logs: list):
        get_logger("apkg_ingest.tests").info("bound")

        bound = [r for r in captured_logs if r["message"] == "bound"]
        assert bound[0]["extra"]["name"] == "apkg_ingest.tests"
