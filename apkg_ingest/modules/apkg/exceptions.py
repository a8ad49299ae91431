"""Errors raised by the .apkg import pipeline.

Only fatal conditions are exceptions; degraded conditions (bad manifest,
unknown model, broken note) are absorbed and counted by the components.
"""

import sqlite3
import zipfile

from apkg_ingest.shared.errors import (
    AppError,
    BadRequestError,
    ExceptionMapper,
    PayloadTooLargeError,
    ValidationError,
)


class ArchiveError(BadRequestError):
    """Invalid .apkg archive."""


class NotAZipError(ArchiveError):
    """File is not a valid .apkg (zip) archive."""


class MissingDatabaseError(ArchiveError):
    """No Anki database found in .apkg file. Expected collection.anki2 or collection.anki21."""


class InvalidFileTypeError(BadRequestError):
    """Invalid file type. Please upload an .apkg file."""


class FileTooLargeError(PayloadTooLargeError):
    """File too large."""


class SchemaError(ValidationError):
    """Unsupported Anki database schema."""


class UnrecognizedSchemaError(SchemaError):
    """Anki database matches no supported schema generation."""


class CorruptDatabaseError(SchemaError):
    """Anki database is corrupt or unreadable."""


class EntryTooLargeError(PayloadTooLargeError):
    """Archive entry is too large to extract."""


@ExceptionMapper.register(zipfile.BadZipFile)
def _handle_bad_zip(exc: zipfile.BadZipFile, func_name: str) -> AppError:
    """Zip: container is damaged or not a zip at all."""
    return NotAZipError(details={"function": func_name, "value": str(exc)})


@ExceptionMapper.register(sqlite3.DatabaseError)
def _handle_database_error(exc: sqlite3.DatabaseError, func_name: str) -> AppError:
    """SQLite: file is not a database or a required table is broken."""
    return CorruptDatabaseError(
        message=f"Anki database is corrupt or unreadable: {exc}",
        details={"function": func_name},
    )
