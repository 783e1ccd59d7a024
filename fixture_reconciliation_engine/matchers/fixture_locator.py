from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.engine import Connection

from fixture_reconciliation_engine.db.tables import fixtures, seasons, teams
from fixture_reconciliation_engine.exceptions import (
    AmbiguousFixtureMatch,
    FixtureNotFound,
)
from fixture_reconciliation_engine.matchers.alias_resolver import lookup_team
from fixture_reconciliation_engine.normalizers.name_normalizer import (
    clean_text,
    first_token,
    normalize_name,
    token_sort_ratio,
)

logger = logging.getLogger(__name__)

DateLike = Union[dt.date, str, None]


@dataclass(frozen=True)
class Fixture:
    id: int
    season_id: int
    season_year: int
    home_team_id: int
    away_team_id: int
    home_team_name: str
    away_team_name: str
    match_timestamp: dt.datetime
    home_score: Optional[int]
    away_score: Optional[int]
    matched_by: Optional[str] = None

    @property
    def match_date(self) -> dt.date:
        return self.match_timestamp.date()


@dataclass
class LookupContext:
    conn: Connection
    home_text: str
    away_text: str
    season_year: int
    date_hint: Optional[dt.date]
    candidates: List[Fixture]
    date_window_days: int = 1


TierFn = Callable[[LookupContext], List[Fixture]]


class LocatorTier(NamedTuple):
    name: str
    run: TierFn


def _fixture_query():
    home = teams.alias("home_team")
    away = teams.alias("away_team")
    return (
        select(
            fixtures.c.id,
            fixtures.c.season_id,
            seasons.c.year.label("season_year"),
            fixtures.c.home_team_id,
            fixtures.c.away_team_id,
            home.c.canonical_name.label("home_team_name"),
            away.c.canonical_name.label("away_team_name"),
            fixtures.c.match_timestamp,
            fixtures.c.home_score,
            fixtures.c.away_score,
        )
        .join(seasons, seasons.c.id == fixtures.c.season_id)
        .join(home, home.c.id == fixtures.c.home_team_id)
        .join(away, away.c.id == fixtures.c.away_team_id)
    )


def _row_to_fixture(row: Any) -> Fixture:
    return Fixture(**dict(row))


def load_fixture(conn: Connection, fixture_id: int) -> Fixture:
    row = conn.execute(_fixture_query().where(fixtures.c.id == fixture_id)).mappings().first()
    if row is None:
        raise FixtureNotFound(f"Fixture {fixture_id} does not exist", fixture_id=fixture_id)
    return _row_to_fixture(row)


def load_season_fixtures(conn: Connection, season_year: int) -> List[Fixture]:
    rows = conn.execute(
        _fixture_query().where(seasons.c.year == season_year).order_by(fixtures.c.id)
    ).mappings()
    return [_row_to_fixture(row) for row in rows]


def coerce_date(value: DateLike) -> Optional[dt.date]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value).strip())


def _on_date(fixture: Fixture, match_date: Optional[dt.date]) -> bool:
    return match_date is None or fixture.match_date == match_date


def _exact_names(candidates: Sequence[Fixture], home_text: str, away_text: str, match_date: Optional[dt.date]) -> List[Fixture]:
    home = clean_text(home_text)
    away = clean_text(away_text)
    return [
        fixture
        for fixture in candidates
        if fixture.home_team_name == home
        and fixture.away_team_name == away
        and _on_date(fixture, match_date)
    ]


def exact_name_tier(ctx: LookupContext) -> List[Fixture]:
    return _exact_names(ctx.candidates, ctx.home_text, ctx.away_text, ctx.date_hint)


def alias_tier(ctx: LookupContext) -> List[Fixture]:
    home = lookup_team(ctx.conn, ctx.home_text)
    away = lookup_team(ctx.conn, ctx.away_text)
    if home is None or away is None:
        logger.debug(
            "Alias tier unresolved home=%r->%s away=%r->%s",
            ctx.home_text,
            home.canonical_name if home else None,
            ctx.away_text,
            away.canonical_name if away else None,
        )
        return []
    return [
        fixture
        for fixture in ctx.candidates
        if fixture.home_team_name == home.canonical_name
        and fixture.away_team_name == away.canonical_name
        and _on_date(fixture, ctx.date_hint)
    ]


def first_token_tier(ctx: LookupContext) -> List[Fixture]:
    home_token = first_token(ctx.home_text).lower()
    away_token = first_token(ctx.away_text).lower()
    if not home_token or not away_token:
        return []
    home_full = clean_text(ctx.home_text).lower()
    away_full = clean_text(ctx.away_text).lower()

    ranked: Dict[int, List[Fixture]] = {}
    for fixture in ctx.candidates:
        if not _on_date(fixture, ctx.date_hint):
            continue
        home_name = fixture.home_team_name.lower()
        away_name = fixture.away_team_name.lower()
        if home_token not in home_name or away_token not in away_name:
            continue
        # Full-text equality on a side outranks a token-only hit.
        rank = int(home_name == home_full) + int(away_name == away_full)
        ranked.setdefault(rank, []).append(fixture)
    if not ranked:
        return []
    return ranked[max(ranked)]


def date_window_tier(ctx: LookupContext) -> List[Fixture]:
    if ctx.date_hint is None:
        return []
    window = ctx.date_window_days
    # Offset 0 repeats the exact-name tier on purpose; the earlier day is tried first.
    for offset in range(-window, window + 1):
        shifted = ctx.date_hint + dt.timedelta(days=offset)
        hits = _exact_names(ctx.candidates, ctx.home_text, ctx.away_text, shifted)
        if hits:
            logger.debug("Date window hit offset=%+d date=%s", offset, shifted)
            return hits
    return []


TIERS: List[LocatorTier] = [
    LocatorTier("exact_name", exact_name_tier),
    LocatorTier("alias", alias_tier),
    LocatorTier("first_token", first_token_tier),
    LocatorTier("date_window", date_window_tier),
]


def _review_candidates(hits: Sequence[Fixture], home_text: str, away_text: str) -> List[Dict[str, Any]]:
    home_norm = normalize_name(home_text)
    away_norm = normalize_name(away_text)
    candidates = []
    for fixture in hits:
        similarity = (
            token_sort_ratio(home_norm, normalize_name(fixture.home_team_name))
            + token_sort_ratio(away_norm, normalize_name(fixture.away_team_name))
        ) / 2
        candidates.append(
            {
                "fixture_id": fixture.id,
                "home_team": fixture.home_team_name,
                "away_team": fixture.away_team_name,
                "match_timestamp": fixture.match_timestamp.isoformat(),
                "similarity": round(similarity, 3),
            }
        )
    candidates.sort(key=lambda item: (-item["similarity"], item["fixture_id"]))
    return candidates


def find_fixture(
    conn: Connection,
    home_text: str,
    away_text: str,
    season_year: int,
    date_hint: DateLike = None,
    tiers: Optional[Sequence[LocatorTier]] = None,
    date_window_days: int = 1,
) -> Fixture:
    """Locate the single fixture described by raw team texts, season and date.

    Tiers run in order and the first one producing hits decides: one hit is
    returned, several raise :class:`AmbiguousFixtureMatch`. No hits in any
    tier raises :class:`FixtureNotFound`.
    """
    ctx = LookupContext(
        conn=conn,
        home_text=home_text,
        away_text=away_text,
        season_year=season_year,
        date_hint=coerce_date(date_hint),
        candidates=load_season_fixtures(conn, season_year),
        date_window_days=date_window_days,
    )
    if not ctx.candidates:
        raise FixtureNotFound(f"No fixtures stored for season {season_year}")

    for tier in tiers if tiers is not None else TIERS:
        hits = tier.run(ctx)
        if not hits:
            continue
        if len(hits) > 1:
            raise AmbiguousFixtureMatch(
                f"{len(hits)} fixtures match {home_text!r} v {away_text!r} "
                f"in season {season_year} (tier {tier.name})",
                tier=tier.name,
                candidates=_review_candidates(hits, home_text, away_text),
            )
        fixture = replace(hits[0], matched_by=tier.name)
        logger.debug(
            "Located fixture id=%s tier=%s home=%r away=%r",
            fixture.id,
            tier.name,
            home_text,
            away_text,
        )
        return fixture

    raise FixtureNotFound(
        f"No fixture for {home_text!r} v {away_text!r} in season {season_year} "
        f"on {ctx.date_hint or 'any date'}"
    )
