"""
ledger.py - Shared, thread-safe account and transaction store

The Ledger is the single source of truth for client accounts and for the
history of stored deposits and withdrawals. It is shared by every ingestion
worker, so every access goes through an exclusive-access operation:

    - with_account(): get-or-create an Account and mutate it under the lock
    - with_stored_transaction(): mutate a stored record under the lock
    - get_stored_transaction(), store_transaction(): copy in, copy out
    - snapshot_accounts(): export view with derived totals

The underlying maps are never handed out.

Lock ordering:
    Each map has its own re-entrant lock. A caller that needs both always
    takes the accounts lock first, then the transactions lock. Nothing in
    this module acquires them the other way round.
"""

from __future__ import annotations
from dataclasses import replace
from threading import RLock
from typing import Callable, Dict, List, Optional, TypeVar

from .core import Account, AccountSnapshot, TransactionRecord
from .logging_setup import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Ledger:
    """
    Concurrent store of accounts and stored transactions.

    Thread Safety:
        Safe to share between threads. Callbacks run while the relevant lock
        is held, so they must not block on other threads that need the same
        ledger.

    Example:
        ledger = Ledger("main")

        def credit(account):
            account.available += Amount.from_decimal_string("10")

        ledger.with_account(1, credit)
        ledger.snapshot_accounts()
    """

    def __init__(self, name: str = "main"):
        """
        Create an empty ledger.

        Args:
            name: Ledger identifier (used in log messages)
        """
        self.name = name
        self._accounts: Dict[int, Account] = {}
        self._transactions: Dict[int, TransactionRecord] = {}
        self._accounts_lock = RLock()
        self._transactions_lock = RLock()

    # ========================================================================
    # ACCOUNTS
    # ========================================================================

    def with_account(self, client_id: int, fn: Callable[[Account], T]) -> T:
        """
        Run ``fn`` on the client's account while holding exclusive access.

        The account is created on first reference. Creation and the callback
        happen under the same lock acquisition, so two workers can never
        create the same account twice.

        Args:
            client_id: Client identifier
            fn: Callback receiving the live Account; may mutate it in place

        Returns:
            Whatever ``fn`` returns
        """
        with self._accounts_lock:
            account = self._accounts.get(client_id)
            if account is None:
                account = Account(client_id)
                self._accounts[client_id] = account
                logger.debug("%s: opened account for client %d", self.name, client_id)
            return fn(account)

    def account_snapshot(self, client_id: int) -> Optional[AccountSnapshot]:
        """Snapshot of one account, or None if the client was never referenced."""
        with self._accounts_lock:
            account = self._accounts.get(client_id)
            return account.snapshot() if account is not None else None

    def account_count(self) -> int:
        """Number of accounts created so far."""
        with self._accounts_lock:
            return len(self._accounts)

    def snapshot_accounts(self) -> List[AccountSnapshot]:
        """
        Take an export view of every account.

        Totals are computed here (available + held) and exist only on the
        returned snapshots. Ordered by ascending client id so output is
        reproducible.

        Returns:
            List of AccountSnapshot, one per referenced client
        """
        with self._accounts_lock:
            return [self._accounts[cid].snapshot() for cid in sorted(self._accounts)]

    # ========================================================================
    # STORED TRANSACTIONS
    # ========================================================================

    def get_stored_transaction(self, tx_id: int) -> Optional[TransactionRecord]:
        """
        Look up a stored deposit/withdrawal.

        Returns:
            A copy of the stored record, or None if tx_id is unknown
        """
        with self._transactions_lock:
            record = self._transactions.get(tx_id)
            return replace(record) if record is not None else None

    def with_stored_transaction(
        self,
        tx_id: int,
        fn: Callable[[TransactionRecord], T],
    ) -> Optional[T]:
        """
        Run ``fn`` on the live stored record while holding exclusive access.

        Used by the dispute workflow to read the amount and flip ``disputed``
        in one step.

        Args:
            tx_id: Stored transaction id
            fn: Callback receiving the live TransactionRecord

        Returns:
            Whatever ``fn`` returns, or None (without calling ``fn``) if
            tx_id is unknown
        """
        with self._transactions_lock:
            record = self._transactions.get(tx_id)
            if record is None:
                return None
            return fn(record)

    def store_transaction(self, record: TransactionRecord) -> None:
        """
        Store a copy of ``record`` under its tx_id.

        An existing entry with the same tx_id is overwritten.
        """
        stored = replace(record)
        with self._transactions_lock:
            if record.tx_id in self._transactions:
                logger.debug("%s: tx %d overwritten", self.name, record.tx_id)
            self._transactions[record.tx_id] = stored

    def transaction_count(self) -> int:
        """Number of stored transactions."""
        with self._transactions_lock:
            return len(self._transactions)

    def __repr__(self) -> str:
        return (f"Ledger({self.name!r}, accounts={self.account_count()}, "
                f"transactions={self.transaction_count()})")
