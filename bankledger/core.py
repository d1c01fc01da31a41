"""
Core types for the transaction replay ledger.

This module provides the foundational data structures used by the ledger:
1. Amount: fixed-point money value (integer count of 1/10000 units)
2. TxType: the five transaction kinds and their wire labels
3. TransactionRecord: one parsed input row
4. Account / AccountSnapshot: per-client balance state and its export view
5. Exceptions: LedgerError and domain-specific error types

No floating point value is ever created here. Decimal text is converted to a
scaled integer on the way in and rendered with integer arithmetic on the way out.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Dict, Optional


# ============================================================================
# CONSTANTS
# ============================================================================

# Number of stored units per whole currency unit (4 decimal digits).
AMOUNT_SCALE = 10_000
AMOUNT_DECIMAL_PLACES = 4

# Decimal precision used while scaling parsed text.
AMOUNT_PARSE_PRECISION = 50

# Identifier ranges accepted from the wire (16-bit clients, 32-bit transactions).
MAX_CLIENT_ID = 0xFFFF
MAX_TX_ID = 0xFFFFFFFF


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class StreamReadError(LedgerError):
    """Raised when an input stream cannot be opened or read."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class RecordParseError(LedgerError):
    """Raised when a row cannot be decoded into a TransactionRecord."""

    def __init__(self, source: str, line_number: int, reason: str):
        self.source = source
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"{source}:{line_number}: {reason}")


class ExportError(LedgerError):
    """Raised when the account snapshot cannot be written."""
    pass


# ============================================================================
# AMOUNT
# ============================================================================

@dataclass(frozen=True, slots=True, order=True)
class Amount:
    """
    Signed fixed-point money value.

    Stored as an integer number of 1/10000 units, so Amount(51234) is 5.1234.
    All arithmetic stays in integers.

    Attributes:
        value: Scaled integer value.
    """
    value: int = 0

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"Amount value must be int, got {type(self.value)}")

    @classmethod
    def zero(cls) -> Amount:
        return cls(0)

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional[Amount]:
        """
        Parse decimal text into an Amount, or None if it is not a finite numeral.

        The value is multiplied by 10,000 and rounded to the nearest integer,
        ties away from zero. Surrounding whitespace is ignored.
        """
        if text is None:
            return None
        try:
            parsed = Decimal(text.strip())
        except (InvalidOperation, AttributeError):
            return None
        if not parsed.is_finite():
            return None
        with localcontext() as ctx:
            ctx.prec = AMOUNT_PARSE_PRECISION
            try:
                scaled = (parsed * AMOUNT_SCALE).quantize(Decimal(1), rounding=ROUND_HALF_UP)
            except InvalidOperation:
                # More integer digits than the parse precision can hold
                return None
        return cls(int(scaled))

    @classmethod
    def from_decimal_string(cls, text: Optional[str]) -> Amount:
        """
        Parse decimal text into an Amount, leniently.

        Unparseable, empty or non-finite input yields the zero Amount rather
        than an error.

        Args:
            text: Decimal numeral such as "5.1234" or "-3"

        Returns:
            The parsed Amount (Amount.zero() on bad input)
        """
        parsed = cls.parse(text)
        return parsed if parsed is not None else cls.zero()

    def to_decimal_string(self) -> str:
        """
        Render as decimal text with exactly four fractional digits.

        Example:
            Amount(51234).to_decimal_string() == "5.1234"
            Amount(-5000).to_decimal_string() == "-0.5000"
        """
        sign = "-" if self.value < 0 else ""
        whole, frac = divmod(abs(self.value), AMOUNT_SCALE)
        return f"{sign}{whole}.{frac:0{AMOUNT_DECIMAL_PLACES}d}"

    def add(self, other: Amount) -> Amount:
        return Amount(self.value + other.value)

    def subtract(self, other: Amount) -> Amount:
        return Amount(self.value - other.value)

    def is_zero(self) -> bool:
        return self.value == 0

    def __add__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self) -> Amount:
        return Amount(-self.value)

    def __str__(self) -> str:
        return self.to_decimal_string()

    def __repr__(self) -> str:
        return f"Amount({self.to_decimal_string()})"


# ============================================================================
# TRANSACTION TYPES
# ============================================================================

class TxType(Enum):
    """
    Kind of an input transaction.

    DEPOSIT and WITHDRAWAL carry an amount and are stored in the ledger's
    history. DISPUTE, RESOLVE and CHARGEBACK are meta-operations that refer to
    a stored record by its transaction id.
    """
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def is_stored(self) -> bool:
        """True for kinds that are recorded in the transaction history."""
        return self in (TxType.DEPOSIT, TxType.WITHDRAWAL)

    @classmethod
    def from_label(cls, label: str) -> TxType:
        """
        Map a wire label to its TxType.

        Labels are case-sensitive.

        Raises:
            ValueError: If the label is not one of the five known kinds
        """
        try:
            return TX_TYPE_LABELS[label]
        except KeyError:
            raise ValueError(f"Unrecognized transaction type: {label!r}") from None


TX_TYPE_LABELS: Dict[str, TxType] = {
    "deposit": TxType.DEPOSIT,
    "withdrawal": TxType.WITHDRAWAL,
    "dispute": TxType.DISPUTE,
    "resolve": TxType.RESOLVE,
    "chargeback": TxType.CHARGEBACK,
}


# ============================================================================
# TRANSACTION RECORD
# ============================================================================

def _check_id(name: str, value: int, upper: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be int, got {type(value)}")
    if not 0 <= value <= upper:
        raise ValueError(f"{name} out of range: {value}")


@dataclass(slots=True)
class TransactionRecord:
    """
    One parsed input row.

    Everything except ``disputed`` is fixed once parsed. ``disputed`` starts
    False and is only flipped by the processor on the copy held in the ledger.

    Attributes:
        kind: Transaction kind.
        client_id: Client whose account the record applies to.
        tx_id: Transaction id. For meta-operations, the id of the stored
               deposit/withdrawal being referenced.
        amount: Money amount; zero for meta-operations.
        disputed: Whether the stored record is currently under dispute.
    """
    kind: TxType
    client_id: int
    tx_id: int
    amount: Amount = field(default_factory=Amount.zero)
    disputed: bool = False

    def __post_init__(self):
        if not isinstance(self.kind, TxType):
            raise ValueError(f"TransactionRecord kind must be TxType, got {type(self.kind)}")
        _check_id("client_id", self.client_id, MAX_CLIENT_ID)
        _check_id("tx_id", self.tx_id, MAX_TX_ID)
        if not isinstance(self.amount, Amount):
            raise ValueError(f"TransactionRecord amount must be Amount, got {type(self.amount)}")

    def __repr__(self) -> str:
        flag = ", disputed" if self.disputed else ""
        return (f"TransactionRecord({self.kind.value}, client={self.client_id}, "
                f"tx={self.tx_id}, amount={self.amount}{flag})")


# ============================================================================
# ACCOUNTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """
    Export-only view of an account, with the derived total.

    Taken by Ledger.snapshot_accounts(); never fed back into processing.
    """
    client_id: int
    available: Amount
    held: Amount
    total: Amount
    locked: bool


@dataclass(slots=True)
class Account:
    """
    Balance state for one client.

    Attributes:
        client_id: Owning client.
        available: Funds the client can withdraw.
        held: Funds frozen by an open dispute.
        locked: Set by a chargeback; a locked account ignores all later records.

    ``available`` and ``held`` may go negative (for example, disputing a
    deposit that was already withdrawn). That is accepted ledger behavior.
    """
    client_id: int
    available: Amount = field(default_factory=Amount.zero)
    held: Amount = field(default_factory=Amount.zero)
    locked: bool = False

    def snapshot(self) -> AccountSnapshot:
        """Freeze the current state and compute total = available + held."""
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.available + self.held,
            locked=self.locked,
        )
