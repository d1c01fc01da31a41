"""
conftest.py - Shared pytest fixtures for bankledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Ledgers and processors
- A CSV file factory for ingestion tests
- Logging isolation between tests
"""

import pytest
from pathlib import Path
from typing import Callable, Iterable

from bankledger import Ledger, TransactionProcessor
from bankledger.logging_setup import reset_logging


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def _isolate_logging():
    """Undo configure_logging() calls made by CLI tests."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def ledger():
    """Fresh, empty ledger."""
    return Ledger("test")


@pytest.fixture
def processor(ledger):
    """Processor bound to the ``ledger`` fixture."""
    return TransactionProcessor(ledger)


# =============================================================================
# CSV FIXTURES
# =============================================================================

@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory writing a transaction CSV under tmp_path.

    Example:
        path = write_csv("a.csv", ["deposit, 1, 1, 1.0", "withdrawal, 1, 2, 0.5"])
    """
    def _write(name: str, rows: Iterable[str], header: str = "type, client, tx, amount") -> Path:
        path = tmp_path / name
        lines = [header] if header is not None else []
        lines.extend(rows)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
