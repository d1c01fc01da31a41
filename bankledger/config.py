"""
config.py - Ingestion settings

IngestionConfig holds the knobs that change how streams are ingested. Values
come from keyword arguments, or from the environment via from_env():

    BANKLEDGER_MAX_WORKERS          positive int, cap on worker threads
    BANKLEDGER_SKIP_MALFORMED_ROWS  1/true/yes/on to skip bad rows
"""

from __future__ import annotations
from dataclasses import dataclass
import os
from typing import Mapping, Optional

MAX_WORKERS_ENV = "BANKLEDGER_MAX_WORKERS"
SKIP_MALFORMED_ENV = "BANKLEDGER_SKIP_MALFORMED_ROWS"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _parse_workers(name: str, raw: str) -> Optional[int]:
    value = raw.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class IngestionConfig:
    """
    Settings for IngestionCoordinator.

    Attributes:
        max_workers: Cap on concurrent worker threads. None runs one worker
                     per input stream.
        skip_malformed_rows: When False (default) the first malformed row
                             ends that stream's ingestion. When True the row
                             is logged, counted and skipped.
    """
    max_workers: Optional[int] = None
    skip_malformed_rows: bool = False

    def __post_init__(self):
        if self.max_workers is not None:
            if isinstance(self.max_workers, bool) or not isinstance(self.max_workers, int):
                raise ValueError(f"max_workers must be int, got {type(self.max_workers)}")
            if self.max_workers < 1:
                raise ValueError(f"max_workers must be positive, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> IngestionConfig:
        """
        Build a config from environment variables.

        Args:
            environ: Mapping to read (defaults to os.environ)
            **overrides: Field values that win over the environment; None
                         values are ignored

        Raises:
            ValueError: If an environment value cannot be parsed
        """
        env = os.environ if environ is None else environ
        values = {}
        if MAX_WORKERS_ENV in env:
            values["max_workers"] = _parse_workers(MAX_WORKERS_ENV, env[MAX_WORKERS_ENV])
        if SKIP_MALFORMED_ENV in env:
            values["skip_malformed_rows"] = _parse_bool(SKIP_MALFORMED_ENV, env[SKIP_MALFORMED_ENV])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def resolve_workers(self, n_streams: int) -> int:
        """Thread count for ``n_streams`` streams (at least 1)."""
        workers = max(1, n_streams)
        if self.max_workers is not None:
            workers = min(workers, self.max_workers)
        return workers
