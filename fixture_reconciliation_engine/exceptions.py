"""
Errors raised by the reconciliation engine.

Per-event rejections, score mismatches and non-perfect quality reports are
ordinary results and are returned as values rather than raised.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class ReconciliationError(RuntimeError):
    """
    Base class for record-level failures. The batch skips the record and moves on.
    """


class FixtureNotFound(ReconciliationError):
    """
    No fixture matched the supplied teams, season and date.
    """

    def __init__(self, message: str, *, fixture_id: Optional[int] = None):
        super().__init__(message)
        self.fixture_id = fixture_id


class AmbiguousFixtureMatch(ReconciliationError):
    """
    A locator tier produced several equally ranked fixtures.
    """

    def __init__(self, message: str, *, tier: str, candidates: List[Dict[str, Any]]):
        super().__init__(message)
        self.tier = tier
        self.candidates = candidates

    @property
    def candidate_ids(self) -> List[int]:
        return [candidate["fixture_id"] for candidate in self.candidates]


class SeasonNotFound(ReconciliationError):
    """
    The season a fixture should move to does not exist in the store.
    """

    def __init__(self, message: str, *, year: int):
        super().__init__(message)
        self.year = year


class StoreUnavailable(RuntimeError):
    """
    Connectivity to the store was lost. Aborts the remaining batch.
    """

    def __init__(self, message: str, *, outcome: Any = None):
        super().__init__(message)
        self.outcome = outcome
