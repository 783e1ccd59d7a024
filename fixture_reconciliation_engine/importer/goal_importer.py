from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection

from fixture_reconciliation_engine.db.connections import atomic
from fixture_reconciliation_engine.db.tables import goal_events
from fixture_reconciliation_engine.matchers.alias_resolver import lookup_team
from fixture_reconciliation_engine.matchers.fixture_locator import Fixture, load_fixture
from fixture_reconciliation_engine.matchers.player_resolver import resolve_player
from fixture_reconciliation_engine.normalizers.name_normalizer import clean_text
from fixture_reconciliation_engine.validation.config import (
    ReconciliationConfig,
    resolve_config,
)
from fixture_reconciliation_engine.validation.schemas import GoalRecord

logger = logging.getLogger(__name__)

REASON_PLAYER_UNRESOLVED = "player_unresolved"
REASON_TEAM_UNRESOLVED = "team_unresolved"
REASON_TEAM_NOT_IN_FIXTURE = "team_not_in_fixture"
REASON_MINUTE_MISSING = "minute_missing"
REASON_MINUTE_OUT_OF_RANGE = "minute_out_of_range"
REASON_MINUTE_INVALID = "minute_invalid"

GoalInput = Union[GoalRecord, Mapping[str, Any]]


@dataclass(frozen=True)
class RejectedGoalEvent:
    event: Dict[str, Any]
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event, "reason": self.reason}


@dataclass
class ImportResult:
    fixture_id: int
    imported: int = 0
    replaced: int = 0
    rejected: List[RejectedGoalEvent] = field(default_factory=list)


def _coerce_goal(event: GoalInput) -> GoalRecord:
    if isinstance(event, GoalRecord):
        return event
    return GoalRecord.model_validate(dict(event))


def _read_minute(value: Union[int, str, None]) -> Tuple[Optional[int], Optional[str]]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None, REASON_MINUTE_MISSING
    if isinstance(value, int):
        return value, None
    text = value.strip()
    if not text.isdigit():
        return None, REASON_MINUTE_INVALID
    return int(text), None


def _apply_minute_policy(
    raw_minute: Union[int, str, None], config: ReconciliationConfig
) -> Tuple[Optional[int], Optional[str]]:
    minute, reason = _read_minute(raw_minute)
    if reason is not None:
        return None, reason
    if config.minute_min <= minute <= config.minute_max:
        return minute, None
    if config.minute_policy == "clamp":
        clamped = min(max(minute, config.minute_min), config.minute_max)
        logger.debug("Clamped goal minute %s -> %s", minute, clamped)
        return clamped, None
    return None, REASON_MINUTE_OUT_OF_RANGE


def resolve_event_team(
    conn: Connection, fixture: Fixture, team_text: str
) -> Tuple[Optional[int], Optional[str]]:
    text = clean_text(team_text)
    if text == fixture.home_team_name:
        return fixture.home_team_id, None
    if text == fixture.away_team_name:
        return fixture.away_team_id, None
    match = lookup_team(conn, text)
    if match is None:
        return None, REASON_TEAM_UNRESOLVED
    if match.team_id in (fixture.home_team_id, fixture.away_team_id):
        return match.team_id, None
    return None, REASON_TEAM_NOT_IN_FIXTURE


def import_goals(
    conn: Connection,
    fixture_id: int,
    events: Iterable[GoalInput],
    config: Optional[ReconciliationConfig | Mapping[str, Any]] = None,
) -> ImportResult:
    """Replace every goal event of a fixture with ``events``.

    The delete and the inserts form one unit: a failure leaves the previous
    goal list in place. Events whose player, team or minute cannot be accepted
    are reported in ``rejected`` and do not stop the import.
    """
    config = resolve_config(config)
    goals = [_coerce_goal(event) for event in events]
    result = ImportResult(fixture_id=fixture_id)

    with atomic(conn):
        fixture = load_fixture(conn, fixture_id)
        result.replaced = conn.execute(
            delete(goal_events).where(goal_events.c.fixture_id == fixture_id)
        ).rowcount

        rows: List[Dict[str, Any]] = []
        for goal in goals:
            if not clean_text(goal.player_text):
                result.rejected.append(RejectedGoalEvent(goal.to_event(), REASON_PLAYER_UNRESOLVED))
                continue
            minute, reason = _apply_minute_policy(goal.minute, config)
            if reason is None:
                team_id, reason = resolve_event_team(conn, fixture, goal.team_text)
            if reason is not None:
                result.rejected.append(RejectedGoalEvent(goal.to_event(), reason))
                continue
            player = resolve_player(conn, goal.player_text)
            rows.append(
                {
                    "fixture_id": fixture_id,
                    "player_id": player.id,
                    "team_id": team_id,
                    "minute": minute,
                }
            )
        if rows:
            conn.execute(insert(goal_events), rows)
        result.imported = len(rows)

    for rejection in result.rejected:
        logger.warning(
            "Rejected goal event fixture=%s reason=%s event=%s",
            fixture_id,
            rejection.reason,
            rejection.event,
        )
    logger.info(
        "Imported goals fixture=%s imported=%d rejected=%d replaced=%d",
        fixture_id,
        result.imported,
        len(result.rejected),
        result.replaced,
    )
    return result
