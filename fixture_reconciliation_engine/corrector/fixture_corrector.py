from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from sqlalchemy import select, update
from sqlalchemy.engine import Connection

from fixture_reconciliation_engine.db.connections import atomic
from fixture_reconciliation_engine.db.tables import fixtures, seasons
from fixture_reconciliation_engine.exceptions import SeasonNotFound
from fixture_reconciliation_engine.matchers.fixture_locator import (
    DateLike,
    Fixture,
    coerce_date,
    load_fixture,
)
from fixture_reconciliation_engine.normalizers.score_normalizer import format_score
from fixture_reconciliation_engine.normalizers.season_normalizer import (
    season_label,
    season_year_for_date,
)
from fixture_reconciliation_engine.validation.config import (
    ReconciliationConfig,
    resolve_config,
)

logger = logging.getLogger(__name__)

TimeLike = Union[dt.time, str, None]


@dataclass(frozen=True)
class ScoreMismatch:
    fixture_id: int
    authoritative_score: Tuple[int, int]
    stored_score: Tuple[Optional[int], Optional[int]]
    source: Optional[str] = None

    @property
    def message(self) -> str:
        stored_home, stored_away = self.stored_score
        return (
            f"Fixture {self.fixture_id}: authoritative score "
            f"{format_score(*self.authoritative_score)} differs from stored "
            f"{stored_home}-{stored_away}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "score_mismatch",
            "fixture_id": self.fixture_id,
            "authoritative_score": list(self.authoritative_score),
            "stored_score": list(self.stored_score),
            "source": self.source,
            "message": self.message,
        }


@dataclass(frozen=True)
class CorrectionResult:
    fixture: Fixture
    changed: bool
    previous_timestamp: dt.datetime
    previous_season_year: int
    season_reclassified: bool
    score_mismatch: Optional[ScoreMismatch]
    source: Optional[str]


def coerce_time(value: TimeLike) -> Optional[dt.time]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.time):
        return value
    return dt.time.fromisoformat(str(value).strip())


def _compare_score(
    fixture: Fixture,
    authoritative_score: Optional[Tuple[int, int]],
    source: Optional[str],
) -> Optional[ScoreMismatch]:
    if authoritative_score is None:
        return None
    if fixture.home_score is None or fixture.away_score is None:
        logger.debug("Fixture id=%s has no stored score to compare", fixture.id)
        return None
    stored = (fixture.home_score, fixture.away_score)
    if tuple(authoritative_score) == stored:
        return None
    return ScoreMismatch(
        fixture_id=fixture.id,
        authoritative_score=tuple(authoritative_score),
        stored_score=stored,
        source=source,
    )


def _season_id_for_year(conn: Connection, year: int) -> int:
    season_id = conn.execute(select(seasons.c.id).where(seasons.c.year == year)).scalar()
    if season_id is None:
        raise SeasonNotFound(f"Season {year} ({season_label(year)}) does not exist", year=year)
    return season_id


def correct_fixture(
    conn: Connection,
    fixture_id: int,
    authoritative_date: DateLike,
    authoritative_time: TimeLike = None,
    source: Optional[str] = None,
    authoritative_score: Optional[Tuple[int, int]] = None,
    config: Optional[ReconciliationConfig | Mapping[str, Any]] = None,
) -> CorrectionResult:
    """Apply a verified date (and optional kickoff time) to a stored fixture.

    The stored time of day is kept when no verified time is supplied. The
    fixture is moved to the season its corrected date belongs to; a missing
    target season raises :class:`SeasonNotFound` and nothing is written.
    Scores are compared only; a disagreement is returned as a
    :class:`ScoreMismatch` and the stored score is left untouched.
    """
    config = resolve_config(config)
    match_date = coerce_date(authoritative_date)
    if match_date is None:
        raise ValueError("authoritative_date is required")
    kickoff = coerce_time(authoritative_time)

    with atomic(conn):
        fixture = load_fixture(conn, fixture_id)
        previous = fixture.match_timestamp
        new_timestamp = dt.datetime.combine(match_date, kickoff or previous.time())

        score_mismatch = _compare_score(fixture, authoritative_score, source)
        if score_mismatch is not None:
            logger.warning("%s (source=%s), stored score kept", score_mismatch.message, source)

        correct_year = season_year_for_date(match_date, config.season_start_month)
        values: Dict[str, Any] = {}
        if correct_year != fixture.season_year:
            values["season_id"] = _season_id_for_year(conn, correct_year)
        if new_timestamp != previous:
            values["match_timestamp"] = new_timestamp

        if values:
            values["updated_at"] = dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
            conn.execute(update(fixtures).where(fixtures.c.id == fixture_id).values(**values))
            logger.info(
                "Corrected fixture id=%s timestamp=%s->%s season=%s->%s source=%s",
                fixture_id,
                previous.isoformat(),
                new_timestamp.isoformat(),
                fixture.season_year,
                correct_year,
                source,
            )
        corrected = replace(load_fixture(conn, fixture_id), matched_by=fixture.matched_by)

    return CorrectionResult(
        fixture=corrected,
        changed=bool(values),
        previous_timestamp=previous,
        previous_season_year=fixture.season_year,
        season_reclassified="season_id" in values,
        score_mismatch=score_mismatch,
        source=source,
    )
