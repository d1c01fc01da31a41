"""
processor.py - Transaction state machine

Applies one TransactionRecord to the shared Ledger.

Handlers are plain functions, one per TxType, collected in DEFAULT_HANDLERS.
Each handler receives the ledger, the client's live Account (already locked)
and the record, mutates in place, and returns True if the record changed
anything. A False return is a silent no-op: unknown tx ids, resolving an
undisputed record, insufficient funds and so on are never errors.

The whole application of a record, including the lookup and flag update of a
stored record for meta-operations and the final store of deposits and
withdrawals, happens inside one Ledger.with_account() call.
"""

from __future__ import annotations
from typing import Callable, Dict, Mapping, Optional

from .core import Account, TransactionRecord, TxType
from .ledger import Ledger
from .logging_setup import get_logger

logger = get_logger(__name__)

Handler = Callable[[Ledger, Account, TransactionRecord], bool]


# ============================================================================
# HANDLER FUNCTIONS
# ============================================================================

def handle_deposit(ledger: Ledger, account: Account, record: TransactionRecord) -> bool:
    """Credit available funds."""
    account.available += record.amount
    return True


def handle_withdrawal(ledger: Ledger, account: Account, record: TransactionRecord) -> bool:
    """Debit available funds if they cover the amount."""
    if account.available < record.amount:
        logger.debug("client %d: withdrawal tx %d of %s exceeds available %s",
                     account.client_id, record.tx_id, record.amount, account.available)
        return False
    account.available -= record.amount
    return True


def handle_dispute(ledger: Ledger, account: Account, record: TransactionRecord) -> bool:
    """
    Move the disputed record's amount from available to held.

    The stored record's owner is not checked: the hold lands on the account
    that issued the dispute. The disputed flag is not checked either, so a
    repeated dispute holds the amount again.
    """
    def hold(stored: TransactionRecord) -> bool:
        if stored.client_id != account.client_id:
            logger.warning("client %d disputes tx %d owned by client %d",
                           account.client_id, stored.tx_id, stored.client_id)
        account.available -= stored.amount
        account.held += stored.amount
        stored.disputed = True
        return True

    return bool(ledger.with_stored_transaction(record.tx_id, hold))


def handle_resolve(ledger: Ledger, account: Account, record: TransactionRecord) -> bool:
    """Release held funds of a disputed record back to available."""
    def release(stored: TransactionRecord) -> bool:
        if not stored.disputed:
            return False
        account.available += stored.amount
        account.held -= stored.amount
        stored.disputed = False
        return True

    return bool(ledger.with_stored_transaction(record.tx_id, release))


def handle_chargeback(ledger: Ledger, account: Account, record: TransactionRecord) -> bool:
    """
    Remove held funds of a disputed record and lock the account.

    The stored record keeps its disputed flag.
    """
    def reverse(stored: TransactionRecord) -> bool:
        if not stored.disputed:
            return False
        account.locked = True
        account.held -= stored.amount
        return True

    return bool(ledger.with_stored_transaction(record.tx_id, reverse))


# ============================================================================
# HANDLER REGISTRY
# ============================================================================

DEFAULT_HANDLERS: Dict[TxType, Handler] = {
    TxType.DEPOSIT: handle_deposit,
    TxType.WITHDRAWAL: handle_withdrawal,
    TxType.DISPUTE: handle_dispute,
    TxType.RESOLVE: handle_resolve,
    TxType.CHARGEBACK: handle_chargeback,
}


class TransactionProcessor:
    """
    Feeds records into a Ledger.

    One processor per ingestion worker; all of them share the same Ledger.
    """

    def __init__(self, ledger: Ledger, handlers: Optional[Mapping[TxType, Handler]] = None):
        """
        Args:
            ledger: Shared ledger to mutate
            handlers: Handler per TxType (defaults to DEFAULT_HANDLERS)

        Raises:
            ValueError: If a TxType has no handler
        """
        self.ledger = ledger
        self.handlers: Dict[TxType, Handler] = dict(handlers or DEFAULT_HANDLERS)
        missing = [t.value for t in TxType if t not in self.handlers]
        if missing:
            raise ValueError(f"No handler for transaction types: {', '.join(missing)}")

    def process(self, record: TransactionRecord) -> None:
        """
        Apply one record.

        1. Get or create the client's account; a locked account drops the record.
        2. Dispatch to the handler for record.kind.
        3. Store deposits and withdrawals under their tx_id, whether or not
           the handler changed the balance.
        """
        self.ledger.with_account(record.client_id, lambda account: self._apply(account, record))

    def _apply(self, account: Account, record: TransactionRecord) -> None:
        if account.locked:
            logger.debug("client %d locked, dropped %r", account.client_id, record)
            return
        applied = self.handlers[record.kind](self.ledger, account, record)
        if not applied:
            logger.debug("no-op: %r", record)
        if record.kind.is_stored:
            self.ledger.store_transaction(record)
