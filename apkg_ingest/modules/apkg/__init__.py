"""APKG module for importing Anki packages as flashcards."""

from .exceptions import (
    ArchiveError,
    CorruptDatabaseError,
    EntryTooLargeError,
    FileTooLargeError,
    InvalidFileTypeError,
    MissingDatabaseError,
    NotAZipError,
    SchemaError,
    UnrecognizedSchemaError,
)
from .models import ParsedCollection, SchemaGeneration
from .parser import ApkgParser
from .schemas import (
    ImportMode,
    ImportProgress,
    ImportRequest,
    ImportResult,
    ImportStage,
    ImportStats,
    NormalizedFlashcard,
    PreviewFlashcard,
)
from .service import ImportService, validate_upload
from .stats import compute_stats
from .transformer import NoteTransformer, transform_note

__all__ = [
    "ApkgParser",
    "ArchiveError",
    "CorruptDatabaseError",
    "EntryTooLargeError",
    "FileTooLargeError",
    "ImportMode",
    "ImportProgress",
    "ImportRequest",
    "ImportResult",
    "ImportService",
    "ImportStage",
    "ImportStats",
    "InvalidFileTypeError",
    "MissingDatabaseError",
    "NormalizedFlashcard",
    "NotAZipError",
    "NoteTransformer",
    "ParsedCollection",
    "PreviewFlashcard",
    "SchemaError",
    "SchemaGeneration",
    "UnrecognizedSchemaError",
    "compute_stats",
    "transform_note",
    "validate_upload",
]
