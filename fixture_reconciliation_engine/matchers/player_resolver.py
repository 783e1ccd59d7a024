import logging
from dataclasses import dataclass

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Connection

from fixture_reconciliation_engine.db.tables import players
from fixture_reconciliation_engine.normalizers.name_normalizer import clean_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Player:
    id: int
    name: str
    created: bool = False


def resolve_player(conn: Connection, name_text: str) -> Player:
    # Exact case-insensitive match only; "R. Wilkins" and "Ray Wilkins" stay distinct.
    name = clean_text(name_text)
    if not name:
        raise ValueError("Player name must not be blank")
    row = conn.execute(
        select(players.c.id, players.c.name)
        .where(func.lower(players.c.name) == func.lower(name))
        .order_by(players.c.id)
        .limit(1)
    ).mappings().first()
    if row is not None:
        return Player(id=row["id"], name=row["name"])
    result = conn.execute(insert(players).values(name=name))
    player_id = result.inserted_primary_key[0]
    logger.info("Created player id=%s name=%r", player_id, name)
    return Player(id=player_id, name=name, created=True)
