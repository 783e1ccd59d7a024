import datetime as dt

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.pool import StaticPool

from fixture_reconciliation_engine.db.connections import enable_sqlite_savepoints, init_db
from fixture_reconciliation_engine.db.tables import fixtures, seasons, teams
from fixture_reconciliation_engine.matchers.alias_resolver import seed_aliases

ARSENAL = 1
NORWICH = 2
MAN_UTD = 3
IPSWICH = 4
SHEFF_UTD = 5
SHEFF_WED = 6
EVERTON = 7
TOTTENHAM = 8

SEASON_1992 = 1
SEASON_1993 = 2

ARSENAL_NORWICH = 1
MAN_UTD_IPSWICH = 2
SHEFF_UTD_MAN_UTD = 3
EVERTON_SHEFF_WED = 4

TEAMS = [
    (ARSENAL, "Arsenal"),
    (NORWICH, "Norwich City"),
    (MAN_UTD, "Manchester United"),
    (IPSWICH, "Ipswich Town"),
    (SHEFF_UTD, "Sheffield United"),
    (SHEFF_WED, "Sheffield Wednesday"),
    (EVERTON, "Everton"),
    (TOTTENHAM, "Tottenham Hotspur"),
]

ALIAS_ROWS = [
    {"team": "Tottenham Hotspur", "alias_text": "Spurs", "alias_type": "alternative", "confidence_score": 95},
    {"team": "Manchester United", "alias_text": "Man Utd", "alias_type": "alternative"},
    {"team": "Ipswich Town", "alias_text": "Ipswich", "alias_type": "alternative"},
    {"team": "Norwich City", "alias_text": "Norwich", "alias_type": "alternative"},
    {"team": "Sheffield Wednesday", "alias_text": "Owls", "alias_type": "nickname"},
]


def make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return enable_sqlite_savepoints(engine)


def seed_reference_data(conn) -> None:
    conn.execute(insert(teams), [{"id": team_id, "canonical_name": name} for team_id, name in TEAMS])
    conn.execute(
        insert(seasons),
        [
            {"id": SEASON_1992, "year": 1992, "name": "1991-92"},
            {"id": SEASON_1993, "year": 1993, "name": "1992-93"},
        ],
    )
    conn.execute(
        insert(fixtures),
        [
            {
                "id": ARSENAL_NORWICH,
                "season_id": SEASON_1993,
                "home_team_id": ARSENAL,
                "away_team_id": NORWICH,
                "match_timestamp": dt.datetime(1992, 8, 15, 15, 0),
                "home_score": 2,
                "away_score": 4,
            },
            {
                # filed under the wrong season on purpose
                "id": MAN_UTD_IPSWICH,
                "season_id": SEASON_1992,
                "home_team_id": MAN_UTD,
                "away_team_id": IPSWICH,
                "match_timestamp": dt.datetime(1992, 8, 21, 19, 45),
                "home_score": 1,
                "away_score": 1,
            },
            {
                "id": SHEFF_UTD_MAN_UTD,
                "season_id": SEASON_1993,
                "home_team_id": SHEFF_UTD,
                "away_team_id": MAN_UTD,
                "match_timestamp": dt.datetime(1992, 8, 15, 15, 0),
                "home_score": 2,
                "away_score": 1,
            },
            {
                "id": EVERTON_SHEFF_WED,
                "season_id": SEASON_1993,
                "home_team_id": EVERTON,
                "away_team_id": SHEFF_WED,
                "match_timestamp": dt.datetime(1992, 8, 15, 15, 0),
                "home_score": 1,
                "away_score": 1,
            },
        ],
    )
    seed_aliases(conn, ALIAS_ROWS)


@pytest.fixture
def engine():
    engine = make_engine()
    init_db(engine)
    with engine.begin() as conn:
        seed_reference_data(conn)
    yield engine
    engine.dispose()


@pytest.fixture
def conn(engine):
    with engine.connect() as connection:
        yield connection


def arsenal_norwich_goals():
    return [
        {"playerText": "Steve Bould", "teamText": "Arsenal", "minute": 28},
        {"playerText": "Kevin Campbell", "teamText": "Arsenal", "minute": 39},
        {"playerText": "Mark Robins", "teamText": "Norwich City", "minute": 69},
        {"playerText": "David Phillips", "teamText": "Norwich", "minute": 72},
        {"playerText": "Ruel Fox", "teamText": "Norwich City", "minute": 82},
        {"playerText": "Mark Robins", "teamText": "Norwich City", "minute": 84},
    ]
