"""
rows.py - CSV row codec

Reading: RecordReader turns one CSV file into TransactionRecords, lazily, one
row at a time. The header names the columns (``type, client, tx, amount`` in
any order); fields and header names are whitespace-trimmed, blank lines are
skipped and short rows are accepted (a missing amount is zero).

Writing: write_accounts() renders AccountSnapshots as
``client,available,held,total,locked``.
"""

from __future__ import annotations
import csv
from os import PathLike, fspath
from typing import IO, Dict, Iterable, Iterator, List, Sequence, Union

from .core import (
    Amount, AccountSnapshot, TransactionRecord, TxType,
    RecordParseError, StreamReadError, ExportError,
)
from .logging_setup import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
AMOUNT_COLUMN = "amount"
OUTPUT_HEADER = ("client", "available", "held", "total", "locked")


# ============================================================================
# DECODING
# ============================================================================

def _field(row: Sequence[str], columns: Dict[str, int], name: str) -> str:
    idx = columns.get(name)
    if idx is None or idx >= len(row):
        return ""
    return row[idx].strip()


def _parse_id(text: str, name: str, source: str, line_number: int) -> int:
    if not text:
        raise RecordParseError(source, line_number, f"missing {name}")
    # Plain ASCII digits only; int() would also take "+1", "1_0" and non-ASCII digits
    if not (text.isascii() and text.isdigit()):
        raise RecordParseError(source, line_number, f"invalid {name}: {text!r}")
    return int(text)


def decode_header(header: Sequence[str], source: str) -> Dict[str, int]:
    """
    Map column names to positions.

    Raises:
        RecordParseError: If a required column is missing
    """
    columns: Dict[str, int] = {}
    for idx, name in enumerate(header):
        columns.setdefault(name.strip(), idx)
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise RecordParseError(source, 1, f"header missing columns: {', '.join(missing)}")
    return columns


def decode_row(
    row: Sequence[str],
    columns: Dict[str, int],
    source: str = "<input>",
    line_number: int = 0,
) -> TransactionRecord:
    """
    Decode one CSV row into a TransactionRecord.

    The amount is parsed leniently: an empty or missing amount is zero, and
    a non-empty amount that does not parse is also zero (logged as a warning).

    Args:
        row: Raw CSV fields
        columns: Column positions from decode_header()
        source: Stream name for error messages
        line_number: 1-based line number for error messages

    Raises:
        RecordParseError: On an unknown type label or a bad/out-of-range id
    """
    label = _field(row, columns, "type")
    try:
        kind = TxType.from_label(label)
    except ValueError as e:
        raise RecordParseError(source, line_number, str(e)) from None

    client_id = _parse_id(_field(row, columns, "client"), "client", source, line_number)
    tx_id = _parse_id(_field(row, columns, "tx"), "tx", source, line_number)

    amount_text = _field(row, columns, AMOUNT_COLUMN)
    amount = Amount.from_decimal_string(amount_text)
    if amount_text and Amount.parse(amount_text) is None:
        logger.warning("%s:%d: unparseable amount %r read as zero", source, line_number, amount_text)

    try:
        return TransactionRecord(kind=kind, client_id=client_id, tx_id=tx_id, amount=amount)
    except ValueError as e:
        raise RecordParseError(source, line_number, str(e)) from None


class RecordReader:
    """
    Lazy, single-pass reader of one CSV input stream.

    Iterating opens the file, decodes the header and yields one
    TransactionRecord per data row. The file is closed when iteration ends,
    fails, or the generator is discarded.

    Attributes:
        source: Path of the stream, as a string
        skip_malformed: Skip rows that fail to decode instead of raising
        rows_read: Data rows seen so far (including skipped ones)
        skipped: Rows skipped because they failed to decode

    Raises (during iteration):
        StreamReadError: If the file cannot be opened or read
        RecordParseError: On a malformed row when skip_malformed is False,
                          or on a bad header regardless
    """

    def __init__(self, source: Union[str, PathLike], skip_malformed: bool = False):
        self.source = fspath(source)
        self.skip_malformed = skip_malformed
        self.rows_read = 0
        self.skipped = 0

    def __iter__(self) -> Iterator[TransactionRecord]:
        try:
            fh = open(self.source, encoding="utf-8", newline="")
        except OSError as e:
            raise StreamReadError(self.source, e.strerror or str(e)) from e
        with fh:
            yield from self._decode(self._rows(fh))

    def _rows(self, fh: IO[str]) -> Iterator[List[str]]:
        reader = csv.reader(fh, skipinitialspace=True)
        try:
            for row in reader:
                yield row
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise StreamReadError(self.source, f"line {reader.line_num}: {e}") from e

    def _decode(self, rows: Iterator[List[str]]) -> Iterator[TransactionRecord]:
        columns = None
        line_number = 0
        for row in rows:
            line_number += 1
            if not any(cell.strip() for cell in row):
                continue
            if columns is None:
                columns = decode_header(row, self.source)
                continue
            self.rows_read += 1
            try:
                record = decode_row(row, columns, self.source, line_number)
            except RecordParseError as e:
                if not self.skip_malformed:
                    raise
                self.skipped += 1
                logger.warning("skipped malformed row %s", e)
                continue
            yield record


# ============================================================================
# ENCODING
# ============================================================================

def encode_snapshot(snapshot: AccountSnapshot) -> List[str]:
    """One output row for an account snapshot."""
    return [
        str(snapshot.client_id),
        snapshot.available.to_decimal_string(),
        snapshot.held.to_decimal_string(),
        snapshot.total.to_decimal_string(),
        "true" if snapshot.locked else "false",
    ]


def write_accounts(snapshots: Iterable[AccountSnapshot], stream: IO[str]) -> int:
    """
    Write the account CSV (header plus one row per snapshot).

    Args:
        snapshots: Snapshots in output order
        stream: Text stream to write to

    Returns:
        Number of account rows written

    Raises:
        ExportError: If the stream cannot be written
    """
    writer = csv.writer(stream, lineterminator="\n")
    count = 0
    try:
        writer.writerow(OUTPUT_HEADER)
        for snapshot in snapshots:
            writer.writerow(encode_snapshot(snapshot))
            count += 1
        stream.flush()
    except (OSError, ValueError) as e:
        # ValueError covers writes to a closed stream
        raise ExportError(f"failed writing accounts after {count} rows: {e}") from e
    return count
