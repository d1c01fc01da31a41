"""
bankledger - Transaction Replay Ledger

Replays deposit, withdrawal, dispute, resolve and chargeback records into
per-client account balances. Input streams are ingested concurrently into one
shared, lock-protected ledger.

Usage:
    from bankledger import IngestionCoordinator, Ledger

    ledger = Ledger("main")
    coordinator = IngestionCoordinator(ledger)
    report = coordinator.ingest(["day1.csv", "day2.csv"])
    for snapshot in ledger.snapshot_accounts():
        print(snapshot.client_id, snapshot.available, snapshot.held, snapshot.total)

Or apply records directly:
    from bankledger import Amount, TransactionProcessor, TransactionRecord, TxType

    processor = TransactionProcessor(ledger)
    processor.process(TransactionRecord(TxType.DEPOSIT, 1, 1, Amount.from_decimal_string("3.0")))
"""

# Core types
from .core import (
    Amount,
    TxType,
    TX_TYPE_LABELS,
    TransactionRecord,
    Account,
    AccountSnapshot,
    LedgerError,
    StreamReadError,
    RecordParseError,
    ExportError,
    AMOUNT_SCALE,
    MAX_CLIENT_ID,
    MAX_TX_ID,
)

# Ledger
from .ledger import Ledger

# State machine
from .processor import (
    TransactionProcessor,
    DEFAULT_HANDLERS,
    handle_deposit,
    handle_withdrawal,
    handle_dispute,
    handle_resolve,
    handle_chargeback,
)

# Row codec
from .rows import RecordReader, decode_header, decode_row, write_accounts

# Ingestion
from .config import IngestionConfig
from .ingestion import IngestionCoordinator, IngestionReport, StreamReport

# Logging
from .logging_setup import configure_logging, get_logger

__all__ = [
    # Core
    'Amount', 'TxType', 'TX_TYPE_LABELS', 'TransactionRecord', 'Account', 'AccountSnapshot',
    'LedgerError', 'StreamReadError', 'RecordParseError', 'ExportError',
    'AMOUNT_SCALE', 'MAX_CLIENT_ID', 'MAX_TX_ID',
    # Ledger
    'Ledger',
    # State machine
    'TransactionProcessor', 'DEFAULT_HANDLERS',
    'handle_deposit', 'handle_withdrawal', 'handle_dispute', 'handle_resolve', 'handle_chargeback',
    # Row codec
    'RecordReader', 'decode_header', 'decode_row', 'write_accounts',
    # Ingestion
    'IngestionConfig', 'IngestionCoordinator', 'IngestionReport', 'StreamReport',
    # Logging
    'configure_logging', 'get_logger',
]

__version__ = '1.0.0'
