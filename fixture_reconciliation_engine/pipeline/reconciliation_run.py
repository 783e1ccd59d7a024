from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from fixture_reconciliation_engine.corrector.fixture_corrector import correct_fixture
from fixture_reconciliation_engine.db.connections import (
    atomic,
    is_connect_failure,
    is_connectivity_error,
)
from fixture_reconciliation_engine.exceptions import (
    AmbiguousFixtureMatch,
    FixtureNotFound,
    ReconciliationError,
    StoreUnavailable,
)
from fixture_reconciliation_engine.importer.goal_importer import import_goals
from fixture_reconciliation_engine.matchers.fixture_locator import find_fixture
from fixture_reconciliation_engine.qa.quality_validator import QualityReport, evaluate
from fixture_reconciliation_engine.validation.config import (
    ReconciliationConfig,
    resolve_config,
)
from fixture_reconciliation_engine.validation.schemas import VerifiedMatchRecord

logger = logging.getLogger(__name__)

STATUS_RECONCILED = "reconciled"
STATUS_UNMATCHED = "unmatched"
STATUS_AMBIGUOUS = "ambiguous"
STATUS_SCORE_MISMATCH_SKIPPED = "score_mismatch_skipped"
STATUS_FAILED = "failed"

RecordInput = Union[VerifiedMatchRecord, Mapping[str, Any]]


@dataclass
class RecordResult:
    label: str
    source_label: Optional[str] = None
    status: str = STATUS_FAILED
    matched: bool = False
    fixture_id: Optional[int] = None
    matched_by: Optional[str] = None
    correction_applied: bool = False
    season_reclassified: bool = False
    imported_goal_count: int = 0
    rejected_goal_count: int = 0
    rejected_goals: List[Dict[str, Any]] = field(default_factory=list)
    quality_report: Optional[QualityReport] = None
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    review_candidates: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "source_label": self.source_label,
            "status": self.status,
            "matched": self.matched,
            "fixture_id": self.fixture_id,
            "matched_by": self.matched_by,
            "correction_applied": self.correction_applied,
            "season_reclassified": self.season_reclassified,
            "imported_goal_count": self.imported_goal_count,
            "rejected_goal_count": self.rejected_goal_count,
            "rejected_goals": self.rejected_goals,
            "quality_report": self.quality_report.to_dict() if self.quality_report else None,
            "warnings": self.warnings,
            "review_candidates": self.review_candidates,
            "error": self.error,
        }


@dataclass
class BatchOutcome:
    run_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: List[RecordResult] = field(default_factory=list)

    @property
    def status_counts(self) -> Dict[str, int]:
        return dict(Counter(result.status for result in self.results))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "status_counts": self.status_counts,
            "results": [result.to_dict() for result in self.results],
        }


def _coerce_record(record: RecordInput) -> VerifiedMatchRecord:
    if isinstance(record, VerifiedMatchRecord):
        return record
    return VerifiedMatchRecord.model_validate(dict(record))


def reconcile_record(
    conn: Connection,
    record: VerifiedMatchRecord,
    config: Optional[ReconciliationConfig | Mapping[str, Any]] = None,
) -> RecordResult:
    """Locate, correct, re-import and grade one verified record.

    All writes for the record commit together. Record-level failures are
    reported on the result; only loss of the store raises.
    """
    config = resolve_config(config)
    result = RecordResult(label=record.label, source_label=record.source_label)
    fixture = None
    try:
        with atomic(conn):
            fixture = find_fixture(
                conn,
                record.home_team_text,
                record.away_team_text,
                record.season_year,
                record.date,
                date_window_days=config.date_window_days,
            )
            correction = correct_fixture(
                conn,
                fixture.id,
                record.date,
                record.time,
                source=record.source_label,
                authoritative_score=record.score_line,
                config=config,
            )
            if correction.score_mismatch is not None:
                result.warnings.append(correction.score_mismatch.to_dict())

            if correction.score_mismatch is not None and config.score_mismatch_policy == "skip":
                status = STATUS_SCORE_MISMATCH_SKIPPED
                imported = None
                report = None
            else:
                imported = import_goals(conn, fixture.id, record.goals, config=config)
                report = evaluate(conn, fixture.id, record.expected_goals, config=config)
                status = STATUS_RECONCILED
    except FixtureNotFound as exc:
        logger.warning("Unmatched record %s: %s", record.label, exc)
        result.status = STATUS_UNMATCHED
        result.error = str(exc)
        return result
    except AmbiguousFixtureMatch as exc:
        logger.warning("Ambiguous record %s flagged for review: %s", record.label, exc)
        result.status = STATUS_AMBIGUOUS
        result.review_candidates = exc.candidates
        result.error = str(exc)
        return result
    except ReconciliationError as exc:
        logger.warning("Record %s failed: %s", record.label, exc)
        result.error = str(exc)
        result.matched = fixture is not None
        result.fixture_id = fixture.id if fixture else None
        return result
    except SQLAlchemyError as exc:
        if is_connectivity_error(exc):
            raise StoreUnavailable(f"Lost connection to the store: {exc}") from exc
        logger.exception("Store error while reconciling %s", record.label)
        result.error = f"{type(exc).__name__}: {exc}"
        result.matched = fixture is not None
        result.fixture_id = fixture.id if fixture else None
        return result

    result.status = status
    result.matched = True
    result.fixture_id = fixture.id
    result.matched_by = fixture.matched_by
    result.correction_applied = correction.changed
    result.season_reclassified = correction.season_reclassified
    if imported is not None:
        result.imported_goal_count = imported.imported
        result.rejected_goal_count = len(imported.rejected)
        result.rejected_goals = [rejection.to_dict() for rejection in imported.rejected]
    result.quality_report = report
    logger.info(
        "Reconciled %s fixture=%s tier=%s status=%s classification=%s",
        record.label,
        fixture.id,
        fixture.matched_by,
        status,
        report.classification if report else None,
    )
    return result


def run_batch(
    engine: Engine,
    records: Iterable[RecordInput],
    config: Optional[ReconciliationConfig | Mapping[str, Any]] = None,
    run_id: Optional[str] = None,
) -> BatchOutcome:
    """Reconcile records one after another on a single connection.

    Committed records survive a later failure. :class:`StoreUnavailable`
    carries the partial outcome in ``exc.outcome``.
    """
    config = resolve_config(config)
    outcome = BatchOutcome(
        run_id=run_id or str(uuid4()),
        started_at=datetime.now(timezone.utc),
    )
    logger.info("Reconciliation run started run_id=%s", outcome.run_id)
    try:
        conn = engine.connect()
    except SQLAlchemyError as exc:
        if not is_connect_failure(exc):
            raise
        outcome.finished_at = datetime.now(timezone.utc)
        error = StoreUnavailable(f"Could not reach the store: {exc}")
        error.outcome = outcome
        raise error from exc

    try:
        with conn:
            for raw in records:
                try:
                    record = _coerce_record(raw)
                except ValidationError as exc:
                    label = str(dict(raw).get("homeTeamText", "?")) if isinstance(raw, Mapping) else "?"
                    logger.warning("Invalid record skipped: %s", exc.errors()[:1])
                    outcome.results.append(
                        RecordResult(label=label, status=STATUS_FAILED, error=str(exc))
                    )
                    continue
                outcome.results.append(reconcile_record(conn, record, config))
    except StoreUnavailable as exc:
        outcome.finished_at = datetime.now(timezone.utc)
        exc.outcome = outcome
        logger.error(
            "Reconciliation run aborted run_id=%s after %d records",
            outcome.run_id,
            len(outcome.results),
        )
        raise

    outcome.finished_at = datetime.now(timezone.utc)
    logger.info(
        "Reconciliation run finished run_id=%s counts=%s",
        outcome.run_id,
        outcome.status_counts,
    )
    return outcome
