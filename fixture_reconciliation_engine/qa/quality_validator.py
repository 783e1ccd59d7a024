from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from fixture_reconciliation_engine.db.tables import goal_events
from fixture_reconciliation_engine.matchers.fixture_locator import load_fixture
from fixture_reconciliation_engine.validation.config import (
    ReconciliationConfig,
    resolve_config,
)

logger = logging.getLogger(__name__)

PERFECT = "perfect"
GOOD = "good"
POOR = "poor"
CLASSIFICATIONS = (PERFECT, GOOD, POOR)


@dataclass(frozen=True)
class QualityReport:
    fixture_id: int
    expected_goals: int
    actual_goals: int
    home_goals_actual: int
    away_goals_actual: int
    accuracy_pct: int
    classification: str

    @property
    def shortfall(self) -> bool:
        return self.classification != PERFECT

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def accuracy_pct(actual_goals: int, expected_goals: int) -> int:
    """Percentage of expected goals present, rounded half up; 0 when nothing was expected."""
    if expected_goals <= 0:
        return 0
    return (200 * actual_goals + expected_goals) // (2 * expected_goals)


def classify(
    actual_goals: int,
    expected_goals: int,
    home_goals_actual: int,
    away_goals_actual: int,
    home_score: Optional[int],
    away_score: Optional[int],
    good_accuracy_pct: int = 80,
) -> str:
    if (
        actual_goals == expected_goals
        and home_goals_actual == home_score
        and away_goals_actual == away_score
    ):
        return PERFECT
    if accuracy_pct(actual_goals, expected_goals) >= good_accuracy_pct:
        return GOOD
    return POOR


def evaluate(
    conn: Connection,
    fixture_id: int,
    expected_goals: int,
    config: Optional[ReconciliationConfig | Mapping[str, Any]] = None,
) -> QualityReport:
    if expected_goals < 0:
        raise ValueError("expected_goals must not be negative")
    config = resolve_config(config)
    fixture = load_fixture(conn, fixture_id)
    counts = {
        row["team_id"]: row["goals"]
        for row in conn.execute(
            select(goal_events.c.team_id, func.count().label("goals"))
            .where(goal_events.c.fixture_id == fixture_id)
            .group_by(goal_events.c.team_id)
        ).mappings()
    }
    actual_goals = sum(counts.values())
    home_goals = counts.get(fixture.home_team_id, 0)
    away_goals = counts.get(fixture.away_team_id, 0)

    report = QualityReport(
        fixture_id=fixture_id,
        expected_goals=expected_goals,
        actual_goals=actual_goals,
        home_goals_actual=home_goals,
        away_goals_actual=away_goals,
        accuracy_pct=accuracy_pct(actual_goals, expected_goals),
        classification=classify(
            actual_goals,
            expected_goals,
            home_goals,
            away_goals,
            fixture.home_score,
            fixture.away_score,
            config.good_accuracy_pct,
        ),
    )
    if report.shortfall:
        logger.warning(
            "Quality shortfall fixture=%s classification=%s accuracy=%d%% goals=%d/%d split=%d-%d stored=%s-%s",
            fixture_id,
            report.classification,
            report.accuracy_pct,
            actual_goals,
            expected_goals,
            home_goals,
            away_goals,
            fixture.home_score,
            fixture.away_score,
        )
    return report
