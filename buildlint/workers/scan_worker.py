"""
Scan Worker — Runs the analysis pipeline for one file or a batch of files.

Pipeline per file:
1. Read and decode (file inputs only)
2. Check the content-hash cache
3. Scan markup into a Document
4. Extract command fragments and property definitions (dialects tagged)
5. Execute rule engine
6. Check spans, dedup and sort diagnostics
7. Cache the FileReport

Batches run one worker thread per file, bounded by max_workers, and are
joined before the combined report is built. Cancelling a scan stops new
files from starting; files already running finish normally.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import threading
import time
import uuid
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path

from buildlint.cache.file_cache import FileCache
from buildlint.config import settings
from buildlint.core.errors import MalformedDocumentError
from buildlint.core.extractor import ExtractionOptions, extract, malformed_document_diagnostic
from buildlint.core.markup_parser import parse_document
from buildlint.core.reporter import combine, finalize, summarize, to_records
from buildlint.core.rule_engine import RuleEngine, parse_rule_ids
from buildlint.models.document_models import SourceSpan
from buildlint.models.rule_models import Diagnostic, RuleId, Severity
from buildlint.models.scan_models import FileInput, FileReport, ScanReport, ScanResponse

logger = logging.getLogger("buildlint.worker")


class CancellationToken:
    """Thread-safe flag telling a running batch scan to stop dispatching files."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def decode_content(data: bytes) -> str:
    """Decode build file bytes: UTF-16 when it carries a UTF-16 BOM, UTF-8 otherwise."""
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return data.decode("utf-16")
    return data.decode("utf-8")


def is_encodable(content: str) -> bool:
    """False if the text holds lone surrogates, which cannot be written back out as UTF-8."""
    try:
        content.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def io_error_report(path: str, message: str) -> FileReport:
    """A report holding the single IoError diagnostic for an unreadable file."""
    diagnostic = Diagnostic(
        rule_id=RuleId.IO_ERROR,
        severity=Severity.ERROR,
        message=message,
        span=SourceSpan(line=1, column=1, offset=0, end_offset=0),
        path=path,
    )
    return FileReport(path=path, diagnostics=[diagnostic])


class ScanWorker:
    """Scan orchestrator shared by the CLI and the HTTP API."""

    def __init__(
        self,
        cache: FileCache | None = None,
        options: ExtractionOptions | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.cache = cache or FileCache()
        self.options = options or ExtractionOptions.from_settings()
        self.max_workers = max_workers or settings.max_workers

    # ── Single document ──

    def analyze_text(
        self, path: str, content: str, rules: list[RuleId] | None = None
    ) -> FileReport:
        """
        Analyze one build file given as text.

        Args:
            path: Path reported in diagnostics
            content: Decoded file text
            rules: Rules to run; all rules when None

        Returns:
            FileReport with finalized (checked, deduplicated, sorted) diagnostics
        """
        if not is_encodable(content):
            logger.warning(f"Invalid text in {path}: lone surrogate code point")
            return io_error_report(path, "File content is not valid Unicode text")

        rule_names = [r.value for r in rules] if rules else None
        cached = self.cache.get(path, content, rule_names)
        if cached:
            logger.debug(f"Cache hit: {path}")
            return cached.report.model_copy(update={"cached": True})

        report = self._analyze(path, content, RuleEngine(enabled=rules))
        self.cache.put(path, content, report, rule_names)
        return report

    def _analyze(self, path: str, content: str, engine: RuleEngine) -> FileReport:
        try:
            document = parse_document(content, path)
        except MalformedDocumentError as e:
            logger.warning(f"Nothing extractable in {path}: {e}")
            diagnostic = malformed_document_diagnostic(path, e)
            return FileReport(path=path, diagnostics=finalize([diagnostic], {path: len(content)}))

        extracted = extract(document, self.options)
        result = engine.run({path: extracted})
        diagnostics = finalize(result.diagnostics, {path: document.length})
        dialects = Counter(f.dialect.value for f in extracted.fragments)

        logger.debug(
            f"{path}: {len(extracted.fragments)} fragments, "
            f"{len(extracted.properties)} properties, {len(diagnostics)} diagnostics"
        )
        return FileReport(
            path=path,
            diagnostics=diagnostics,
            fragments=len(extracted.fragments),
            properties=len(extracted.properties),
            dialects=dict(sorted(dialects.items())),
        )

    def analyze_path(self, path: Path, rules: list[RuleId] | None = None) -> FileReport:
        """Read and analyze one build file. Read failures become an IoError report."""
        display = str(path)
        try:
            size = path.stat().st_size
            if size > settings.max_file_size_bytes:
                return io_error_report(
                    display,
                    f"File is {size} bytes, larger than the "
                    f"{settings.max_file_size_bytes} byte limit",
                )
            content = decode_content(path.read_bytes())
        except OSError as e:
            logger.warning(f"Cannot read {display}: {e}")
            return io_error_report(display, f"Cannot read file: {e.strerror or e}")
        except UnicodeDecodeError as e:
            logger.warning(f"Cannot decode {display}: {e}")
            return io_error_report(
                display, f"File is not valid UTF-8 text ({e.reason} at byte {e.start})"
            )
        return self.analyze_text(display, content, rules)

    # ── Batches ──

    async def _gather_bounded(
        self,
        jobs: list[Callable[[], FileReport]],
        token: CancellationToken,
    ) -> list[FileReport | None]:
        semaphore = asyncio.Semaphore(self.max_workers)

        async def run(job: Callable[[], FileReport]) -> FileReport | None:
            async with semaphore:
                if token.cancelled:
                    return None
                return await asyncio.to_thread(job)

        tasks: list[Awaitable[FileReport | None]] = [run(job) for job in jobs]
        return list(await asyncio.gather(*tasks))

    def _build_report(
        self,
        results: list[FileReport | None],
        rules: list[RuleId] | None,
        start_time: float,
    ) -> ScanReport:
        reports = [r for r in results if r is not None]
        diagnostics = combine(reports)
        return ScanReport(
            files=reports,
            diagnostics=to_records(diagnostics),
            summary=summarize(diagnostics),
            rules_executed=RuleEngine(enabled=rules).active_rules,
            files_scanned=len(reports),
            files_skipped=len(results) - len(reports),
            duration_ms=round((time.monotonic() - start_time) * 1000, 2),
        )

    async def scan_paths(
        self,
        paths: Iterable[Path],
        rules: list[RuleId] | None = None,
        token: CancellationToken | None = None,
    ) -> ScanReport:
        """Analyze files from disk concurrently and combine their reports."""
        start_time = time.monotonic()
        token = token or CancellationToken()
        path_list = list(paths)
        logger.info(f"Scanning {len(path_list)} files with {self.max_workers} workers")

        results = await self._gather_bounded(
            [lambda p=p: self.analyze_path(p, rules) for p in path_list], token
        )
        report = self._build_report(results, rules, start_time)

        if report.files_skipped:
            logger.warning(f"Scan cancelled: {report.files_skipped} files not scanned")
        logger.info(
            f"Scan complete in {report.duration_ms:.0f}ms: {report.files_scanned} files, "
            f"{report.summary.total} diagnostics"
        )
        return report

    async def run_scan(
        self,
        files: list[FileInput],
        rule_names: list[str] | None = None,
        token: CancellationToken | None = None,
    ) -> ScanResponse:
        """
        Analyze submitted file contents.

        Raises:
            ValueError: an unknown rule name was requested.
        """
        scan_id = str(uuid.uuid4())[:8]
        start_time = time.monotonic()
        rules = parse_rule_ids(rule_names)
        token = token or CancellationToken()

        logger.info(f"[{scan_id}] Starting scan of {len(files)} files")

        results = await self._gather_bounded(
            [lambda f=f: self.analyze_text(f.path, f.content, rules) for f in files], token
        )
        report = self._build_report(results, rules, start_time)

        logger.info(
            f"[{scan_id}] Scan complete in {report.duration_ms:.0f}ms: "
            f"{report.summary.error} errors, {report.summary.warning} warnings, "
            f"{report.summary.info} info"
        )
        return ScanResponse(message="scan_complete", scan_id=scan_id, report=report)
