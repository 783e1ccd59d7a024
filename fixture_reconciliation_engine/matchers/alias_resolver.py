from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

from sqlalchemy import case, func, insert, select
from sqlalchemy.engine import Connection

from fixture_reconciliation_engine.db.tables import team_aliases, teams
from fixture_reconciliation_engine.normalizers.name_normalizer import clean_text

logger = logging.getLogger(__name__)

ALIAS_TYPE_PRIORITY = (
    "canonical",
    "alternative",
    "historical",
    "abbreviation",
    "nickname",
)
DEFAULT_CONFIDENCE = {
    "canonical": 100,
    "alternative": 95,
    "historical": 90,
    "abbreviation": 85,
    "nickname": 80,
}


@dataclass(frozen=True)
class TeamMatch:
    team_id: int
    canonical_name: str
    alias_type: str
    confidence: int


def _alias_type_rank():
    return case(
        {alias_type: rank for rank, alias_type in enumerate(ALIAS_TYPE_PRIORITY)},
        value=team_aliases.c.alias_type,
        else_=len(ALIAS_TYPE_PRIORITY),
    )


def lookup_team(conn: Connection, text: Optional[str]) -> Optional[TeamMatch]:
    """Resolve free text to a canonical team, or ``None`` when no alias matches.

    Matching is exact and case-insensitive. Several aliases with the same text
    are ranked by confidence, then alias type, then team id.
    """
    cleaned = clean_text(text)
    if not cleaned:
        return None
    query = (
        select(
            team_aliases.c.team_id,
            teams.c.canonical_name,
            team_aliases.c.alias_type,
            team_aliases.c.confidence_score,
        )
        .join(teams, teams.c.id == team_aliases.c.team_id)
        .where(func.lower(team_aliases.c.alias_text) == func.lower(cleaned))
        .order_by(
            team_aliases.c.confidence_score.desc(),
            _alias_type_rank(),
            team_aliases.c.team_id,
        )
        .limit(1)
    )
    row = conn.execute(query).mappings().first()
    if row is None:
        logger.debug("No alias for team text=%r", cleaned)
        return None
    return TeamMatch(
        team_id=row["team_id"],
        canonical_name=row["canonical_name"],
        alias_type=row["alias_type"],
        confidence=row["confidence_score"],
    )


def register_alias(
    conn: Connection,
    team_id: int,
    alias_text: str,
    alias_type: str,
    confidence: Optional[int] = None,
    source: Optional[str] = None,
) -> bool:
    """Store an alias; returns ``False`` when ``(team_id, alias_text)`` already exists."""
    if alias_type not in ALIAS_TYPE_PRIORITY:
        raise ValueError(f"Unknown alias_type '{alias_type}'")
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE[alias_type]
    if not 0 <= int(confidence) <= 100:
        raise ValueError(f"confidence must be between 0 and 100, got {confidence}")
    cleaned = clean_text(alias_text)
    if not cleaned:
        raise ValueError("alias_text must not be blank")

    existing = conn.execute(
        select(team_aliases.c.id).where(
            team_aliases.c.team_id == team_id,
            func.lower(team_aliases.c.alias_text) == func.lower(cleaned),
        )
    ).first()
    if existing is not None:
        return False
    conn.execute(
        insert(team_aliases).values(
            team_id=team_id,
            alias_text=cleaned,
            alias_type=alias_type,
            confidence_score=int(confidence),
            source=source,
        )
    )
    return True


def seed_aliases(
    conn: Connection,
    alias_rows: Iterable[Mapping[str, object]],
    source: str = "manual_mapping",
) -> Dict[str, int]:
    """Register a canonical self-alias for every team, then each mapped variant.

    ``alias_rows`` items carry ``team`` (canonical name), ``alias_text``,
    ``alias_type`` and optionally ``confidence_score``.
    """
    team_ids = {
        row["canonical_name"]: row["id"]
        for row in conn.execute(select(teams.c.id, teams.c.canonical_name)).mappings()
    }
    counts = {"registered": 0, "existing": 0, "unknown_team": 0}

    for canonical_name, team_id in team_ids.items():
        if register_alias(conn, team_id, canonical_name, "canonical", source="database"):
            counts["registered"] += 1
        else:
            counts["existing"] += 1

    for row in alias_rows:
        team_name = clean_text(str(row["team"]))
        team_id = team_ids.get(team_name)
        if team_id is None:
            logger.warning("Alias seed skipped, unknown team=%r alias=%r", team_name, row["alias_text"])
            counts["unknown_team"] += 1
            continue
        confidence = row.get("confidence_score")
        added = register_alias(
            conn,
            team_id,
            str(row["alias_text"]),
            str(row["alias_type"]),
            confidence=int(confidence) if confidence is not None else None,
            source=str(row.get("source") or source),
        )
        counts["registered" if added else "existing"] += 1

    logger.info(
        "Alias seeding finished registered=%d existing=%d unknown_team=%d",
        counts["registered"],
        counts["existing"],
        counts["unknown_team"],
    )
    return counts
