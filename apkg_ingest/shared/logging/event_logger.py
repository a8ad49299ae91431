"""Event Logger.

Structured event logging for .apkg import runs.
Provides type-safe logging functions for observability.
"""

from loguru import logger


def log_import_started(
    mode: str,
    size_bytes: int,
) -> None:
    """Log the start of an import run.

    Args:
        mode: Import mode (preview or commit)
        size_bytes: Size of the uploaded package
    """
    logger.info(
        "APKG import started",
        event="import.started",
        mode=mode,
        size_bytes=size_bytes,
    )


def log_import_progress(
    current: int,
    total: int,
    *,
    stage: str | None = None,
) -> None:
    """Log transformer progress.

    Args:
        current: Notes processed so far
        total: Total notes in the package
        stage: Optional human-readable stage label
    """
    progress_pct = (current / total * 100) if total > 0 else 0
    logger.debug(
        "APKG import progress",
        event="import.progress",
        current=current,
        total=total,
        progress_pct=round(progress_pct, 1),
        stage=stage,
    )


def log_import_completed(
    collection_label: str,
    notes: int,
    cards: int,
    duration_ms: int,
    *,
    skipped_missing_model: int = 0,
    failed_notes: int = 0,
) -> None:
    """Log the successful completion of an import run.

    Args:
        collection_label: Label chosen for the imported collection
        notes: Notes that produced at least one flashcard
        cards: Flashcards emitted
        duration_ms: Total duration in milliseconds
        skipped_missing_model: Notes dropped because their model is unknown
        failed_notes: Notes dropped because their transformation raised
    """
    logger.info(
        "APKG import completed",
        event="import.completed",
        collection_label=collection_label,
        notes=notes,
        cards=cards,
        duration_ms=duration_ms,
        skipped_missing_model=skipped_missing_model,
        failed_notes=failed_notes,
    )


def log_import_failed(
    error: str,
    *,
    error_code: str | None = None,
) -> None:
    """Log a fatal import failure.

    Args:
        error: Error message describing the failure
        error_code: Optional error classification
    """
    logger.error(
        "APKG import failed",
        event="import.failed",
        error=error,
        error_code=error_code,
    )


def log_note_skipped(
    note_id: int,
    reason: str,
    *,
    model_id: int | None = None,
) -> None:
    """Log a note dropped from the import.

    Args:
        note_id: ID of the skipped note
        reason: Why the note was skipped
        model_id: Model referenced by the note, when relevant
    """
    logger.warning(
        "APKG note skipped",
        event="import.note_skipped",
        note_id=note_id,
        reason=reason,
        model_id=model_id,
    )
