"""
ingestion.py - Concurrent ingestion of input streams

IngestionCoordinator runs one worker per input stream on a thread pool. Each
worker reads its stream lazily and feeds records, in stream order, through a
TransactionProcessor bound to the shared Ledger.

Failure isolation:
    An unreadable stream or a malformed row ends that worker only. Records
    already applied stay applied; other workers are unaffected. The outcome
    of every stream is returned in an IngestionReport.

After all workers finish, export() snapshots the ledger and writes the CSV.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from os import PathLike, fspath
from typing import IO, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .config import IngestionConfig
from .core import LedgerError
from .ledger import Ledger
from .logging_setup import get_logger
from .processor import TransactionProcessor
from .rows import RecordReader, write_accounts

logger = get_logger(__name__)

Source = Union[str, PathLike]
ReaderFactory = Callable[..., RecordReader]


# ============================================================================
# REPORTS
# ============================================================================

@dataclass(slots=True)
class StreamReport:
    """
    Outcome of ingesting one stream.

    Attributes:
        source: Stream identifier
        records_applied: Records handed to the processor (no-ops included)
        rows_skipped: Malformed rows skipped (skip policy only)
        error: Why the stream stopped early, or None if it was read to the end
    """
    source: str
    records_applied: int = 0
    rows_skipped: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class IngestionReport:
    """Outcome of one ingest() call, in input order."""
    streams: Tuple[StreamReport, ...] = field(default_factory=tuple)

    @property
    def records_applied(self) -> int:
        return sum(s.records_applied for s in self.streams)

    @property
    def failed_streams(self) -> List[StreamReport]:
        return [s for s in self.streams if not s.ok]

    @property
    def ok(self) -> bool:
        return not self.failed_streams


# ============================================================================
# COORDINATOR
# ============================================================================

class IngestionCoordinator:
    """
    Drives one worker per input stream against a shared Ledger.

    Example:
        coordinator = IngestionCoordinator()
        report = coordinator.run(["a.csv", "b.csv"], sys.stdout)
        for failed in report.failed_streams:
            print(failed.source, failed.error)
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        config: Optional[IngestionConfig] = None,
        reader_factory: ReaderFactory = RecordReader,
    ):
        """
        Args:
            ledger: Shared ledger (a new empty one if not provided)
            config: Ingestion settings (defaults if not provided)
            reader_factory: Called as reader_factory(source, skip_malformed=...)
                            to get an iterable of TransactionRecords
        """
        self.ledger = ledger if ledger is not None else Ledger()
        self.config = config or IngestionConfig()
        self.reader_factory = reader_factory

    def ingest(self, sources: Iterable[Source]) -> IngestionReport:
        """
        Ingest all sources concurrently and wait for every worker.

        Args:
            sources: Input stream identifiers (file paths)

        Returns:
            IngestionReport with one StreamReport per source, in input order
        """
        sources = [fspath(s) for s in sources]
        if not sources:
            return IngestionReport()

        workers = self.config.resolve_workers(len(sources))
        logger.info("ingesting %d stream(s) with %d worker(s)", len(sources), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ingest") as pool:
            futures = [pool.submit(self._ingest_stream, source) for source in sources]
            reports = tuple(f.result() for f in futures)

        for report in reports:
            if not report.ok:
                logger.error("stream %s stopped after %d record(s): %s",
                             report.source, report.records_applied, report.error)
        return IngestionReport(reports)

    def _ingest_stream(self, source: str) -> StreamReport:
        report = StreamReport(source)
        reader = self.reader_factory(source, skip_malformed=self.config.skip_malformed_rows)
        processor = TransactionProcessor(self.ledger)
        try:
            for record in reader:
                processor.process(record)
                report.records_applied += 1
        except LedgerError as e:
            report.error = str(e)
        finally:
            report.rows_skipped = getattr(reader, "skipped", 0)
        logger.info("stream %s: %d record(s) applied, %d skipped",
                    source, report.records_applied, report.rows_skipped)
        return report

    def export(self, stream: IO[str]) -> int:
        """
        Snapshot every account and write the CSV to ``stream``.

        Returns:
            Number of account rows written

        Raises:
            ExportError: If the stream cannot be written
        """
        return write_accounts(self.ledger.snapshot_accounts(), stream)

    def run(self, sources: Sequence[Source], stream: IO[str]) -> IngestionReport:
        """
        Ingest every source, then export.

        Raises:
            ExportError: If the final export fails
        """
        report = self.ingest(sources)
        written = self.export(stream)
        logger.info("exported %d account(s)", written)
        return report
