"""Run configuration and input record schemas."""

from fixture_reconciliation_engine.validation.config import (
    ReconciliationConfig,
    get_reconciliation_config,
)
from fixture_reconciliation_engine.validation.schemas import GoalRecord, VerifiedMatchRecord

__all__ = [
    "ReconciliationConfig",
    "get_reconciliation_config",
    "GoalRecord",
    "VerifiedMatchRecord",
]
