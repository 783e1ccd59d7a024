from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    func,
)

metadata = MetaData()

teams = Table(
    "teams",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("canonical_name", String(100), nullable=False, unique=True),
)

team_aliases = Table(
    "team_aliases",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("team_id", Integer, ForeignKey("teams.id"), nullable=False),
    Column("alias_text", String(100), nullable=False),
    Column("alias_type", String(20), nullable=False),
    Column("confidence_score", Integer, nullable=False, default=100),
    Column("source", String(100)),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
)

Index(
    "uq_team_aliases_team_alias_text",
    team_aliases.c.team_id,
    func.lower(team_aliases.c.alias_text),
    unique=True,
)
Index("ix_team_aliases_alias_text", func.lower(team_aliases.c.alias_text))

seasons = Table(
    "seasons",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("year", Integer, nullable=False, unique=True),
    Column("name", String(20)),
)

fixtures = Table(
    "fixtures",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("season_id", Integer, ForeignKey("seasons.id"), nullable=False),
    Column("home_team_id", Integer, ForeignKey("teams.id"), nullable=False),
    Column("away_team_id", Integer, ForeignKey("teams.id"), nullable=False),
    Column("match_timestamp", DateTime, nullable=False),
    Column("home_score", Integer),
    Column("away_score", Integer),
    Column("updated_at", DateTime),
)

Index("ix_fixtures_season_id", fixtures.c.season_id)

players = Table(
    "players",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(150), nullable=False),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
)

goal_events = Table(
    "goal_events",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("fixture_id", Integer, ForeignKey("fixtures.id"), nullable=False),
    Column("player_id", Integer, ForeignKey("players.id"), nullable=False),
    Column("team_id", Integer, ForeignKey("teams.id"), nullable=False),
    Column("minute", Integer),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
)

Index("ix_goal_events_fixture_id", goal_events.c.fixture_id)
