"""Import service: the boundary between the pipeline and its host.

The host (an upload endpoint, a worker) hands over the package bytes and
receives either a preview payload or the complete commit payload. Storing
the flashcards and uploading the media is the host's job.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import aclosing
from contextvars import Token
from pathlib import PurePath

from apkg_ingest.core.config import ImportConfig, Settings, get_settings
from apkg_ingest.shared.context import trace_id_var
from apkg_ingest.shared.errors import AppError
from apkg_ingest.shared.logging import (
    log_import_completed,
    log_import_failed,
    log_import_started,
)

from .exceptions import FileTooLargeError, InvalidFileTypeError
from .field_mapping import FieldMappingRules
from .models import ParsedCollection
from .parser import ApkgParser
from .schemas import (
    ImportMode,
    ImportProgress,
    ImportRequest,
    ImportResult,
    ImportStage,
    NormalizedFlashcard,
    PreviewFlashcard,
)
from .stats import compute_stats
from .transformer import NoteTransformer

logger = logging.getLogger(__name__)

# Notes transformed between two progress events of the stream
STREAM_CHUNK_SIZE = 200


def validate_upload(filename: str, size: int, config: ImportConfig | None = None) -> None:
    """Check an upload before its bytes are parsed.

    Args:
        filename: Original file name.
        size: Upload size in bytes.
        config: Import settings with the allowed extension and size limit.

    Raises:
        InvalidFileTypeError: If the file does not have the .apkg extension.
        FileTooLargeError: If the upload exceeds the size limit.
    """
    config = config or get_settings().importer

    if PurePath(filename or "").suffix.lower() != config.allowed_extension.lower():
        raise InvalidFileTypeError(
            details={"value": filename, "expected": config.allowed_extension}
        )

    if size > config.max_upload_bytes:
        limit_mb = config.max_upload_bytes // (1024 * 1024)
        raise FileTooLargeError(
            message=f"File too large. Maximum size is {limit_mb}MB.",
            details={"value": size, "expected": f"<= {config.max_upload_bytes} bytes"},
        )


def _truncate(text: str, limit: int) -> str:
    return text[: max(0, limit)]


def _reset_trace_id(token: Token[str]) -> None:
    try:
        trace_id_var.reset(token)
    except ValueError:
        # Stream finalized from another context
        logger.debug("Trace ID was set in another context, left as is")


class ImportService:
    """Service running .apkg imports.

    Example:
        service = ImportService()
        result = service.preview(data)
        print(result.stats.card_count)

    Attributes:
        settings: Application settings.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the import service.

        Args:
            settings: Application settings; defaults to the cached ones.
        """
        self.settings = settings or get_settings()
        self.config = self.settings.importer
        self.rules = FieldMappingRules.from_config(self.config)
        self.parser = ApkgParser(self.settings)

    def preview(self, data: bytes, limit: int | None = None) -> ImportResult:
        """Summarize a package and show its first flashcards.

        Args:
            data: Raw package bytes.
            limit: Number of preview cards; defaults to the configured value.

        Returns:
            Result with stats and truncated preview cards, without media.
        """
        return self._run(data, ImportMode.PREVIEW, limit)

    def commit(self, data: bytes) -> ImportResult:
        """Produce every flashcard of a package with its media.

        Args:
            data: Raw package bytes.

        Returns:
            Result with all flashcards, the bytes of every referenced media
            file that resolved, and the names of those that did not.
        """
        return self._run(data, ImportMode.COMMIT)

    async def import_apkg(self, data: bytes, request: ImportRequest) -> ImportResult:
        """Run an import in the mode asked for by the request.

        Same pipeline as ``stream_import`` without the progress events, so
        the event loop keeps running between transform chunks.

        Args:
            data: Raw package bytes.
            request: Import options.

        Returns:
            Import result.

        Raises:
            AppError: If the package cannot be imported.
        """
        token = trace_id_var.set(uuid.uuid4().hex)
        result: ImportResult | None = None
        try:
            async with aclosing(self._import_stages(data, request)) as stages:
                async for event in stages:
                    if event.result is not None:
                        result = event.result
        finally:
            _reset_trace_id(token)

        if result is None:
            raise AppError(message="Import finished without a result")
        return result

    async def stream_import(
        self,
        data: bytes,
        request: ImportRequest,
    ) -> AsyncGenerator[ImportProgress, None]:
        """Stream import progress for large packages.

        Notes are transformed in chunks and control returns to the event
        loop between chunks. A fatal error ends the stream with an ``error``
        event instead of raising.

        Args:
            data: Raw package bytes.
            request: Import options.

        Yields:
            Import progress updates; the last one carries the result.
        """
        token = trace_id_var.set(uuid.uuid4().hex)
        try:
            try:
                async with aclosing(self._import_stages(data, request)) as stages:
                    async for event in stages:
                        yield event
            except AppError as e:
                yield self._error_event(e)
        finally:
            _reset_trace_id(token)

    async def _import_stages(
        self,
        data: bytes,
        request: ImportRequest,
    ) -> AsyncGenerator[ImportProgress, None]:
        started = time.perf_counter()
        log_import_started(request.mode.value, len(data))

        yield ImportProgress(
            stage=ImportStage.PARSING,
            progress=0,
            message="Parsing .apkg file...",
        )

        try:
            collection = self.parser.parse(data)
        except AppError as e:
            log_import_failed(e.message, error_code=e.code)
            raise

        with collection:
            transformer = NoteTransformer(
                collection,
                rules=self.rules,
                progress_interval=self.config.progress_interval,
            )
            total = transformer.total

            yield ImportProgress(
                stage=ImportStage.TRANSFORMING,
                progress=10,
                current=0,
                total=total,
                message=f"Found {total} notes to import",
            )

            while not transformer.done:
                step = transformer.step(STREAM_CHUNK_SIZE)
                yield ImportProgress(
                    stage=ImportStage.TRANSFORMING,
                    progress=10 + step.percent * 0.8,
                    current=step.current,
                    total=step.total,
                    message=f"Processed {step.current} of {step.total} notes",
                )
                await asyncio.sleep(0)

            yield ImportProgress(
                stage=ImportStage.AGGREGATING,
                progress=95,
                current=total,
                total=total,
                message="Aggregating import stats...",
            )

            try:
                result = self._build_result(
                    collection,
                    transformer,
                    request.mode,
                    request.preview_limit,
                )
            except AppError as e:
                log_import_failed(e.message, error_code=e.code)
                raise

        self._log_completed(result, started)

        yield ImportProgress(
            stage=ImportStage.COMPLETE,
            progress=100,
            current=total,
            total=total,
            message=f"Prepared {result.stats.card_count} flashcards",
            result=result,
        )

    def _run(self, data: bytes, mode: ImportMode, limit: int | None = None) -> ImportResult:
        token = trace_id_var.set(uuid.uuid4().hex)
        started = time.perf_counter()
        log_import_started(mode.value, len(data))

        try:
            with self.parser.parse(data) as collection:
                transformer = NoteTransformer(
                    collection,
                    rules=self.rules,
                    progress_interval=self.config.progress_interval,
                )
                transformer.run()
                result = self._build_result(collection, transformer, mode, limit)
        except AppError as e:
            log_import_failed(e.message, error_code=e.code)
            raise
        finally:
            trace_id_var.reset(token)

        self._log_completed(result, started)
        return result

    def _build_result(
        self,
        collection: ParsedCollection,
        transformer: NoteTransformer,
        mode: ImportMode,
        limit: int | None,
    ) -> ImportResult:
        flashcards = transformer.flashcards
        stats = compute_stats(
            collection,
            flashcards,
            transformer.report,
            tag_sample_size=self.config.tag_sample_size,
        )

        if mode is ImportMode.PREVIEW:
            count = self.config.preview_limit if limit is None else limit
            return ImportResult(
                mode=mode,
                stats=stats,
                previews=[
                    self._to_preview(index, card)
                    for index, card in enumerate(flashcards[: max(0, count)])
                ],
            )

        referenced = [name for card in flashcards for name in card.referenced_media]
        media_files, unresolved = collection.media.resolve(referenced)
        if unresolved:
            logger.info("%d referenced media files are not in the package", len(unresolved))

        return ImportResult(
            mode=mode,
            stats=stats,
            flashcards=flashcards,
            media_files=media_files,
            unresolved_media=unresolved,
        )

    def _to_preview(self, index: int, card: NormalizedFlashcard) -> PreviewFlashcard:
        return PreviewFlashcard(
            id=f"preview-{index}",
            front=_truncate(card.front, self.config.preview_front_chars),
            back=_truncate(card.back, self.config.preview_back_chars),
            extra=(
                _truncate(card.extra, self.config.preview_extra_chars)
                if card.extra is not None
                else None
            ),
            tags=card.tags[: self.config.preview_tag_limit],
            cloze_index=card.cloze_index,
        )

    @staticmethod
    def _error_event(error: AppError) -> ImportProgress:
        return ImportProgress(
            stage=ImportStage.ERROR,
            progress=0,
            message=f"Import failed: {error.message}",
            error_code=error.code,
        )

    @staticmethod
    def _log_completed(result: ImportResult, started: float) -> None:
        stats = result.stats
        log_import_completed(
            stats.collection_label,
            stats.note_count,
            stats.card_count,
            int((time.perf_counter() - started) * 1000),
            skipped_missing_model=stats.skipped_missing_model,
            failed_notes=stats.failed_notes,
        )
