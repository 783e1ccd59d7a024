from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fixture_reconciliation_engine.normalizers.score_normalizer import parse_score
from fixture_reconciliation_engine.normalizers.season_normalizer import normalize_season


class GoalRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    player_text: str = Field(default="", alias="playerText")
    team_text: str = Field(default="", alias="teamText")
    # raw value; the importer rejects minutes it cannot read
    minute: Optional[Union[int, str]] = None

    def to_event(self) -> Dict[str, Any]:
        return {
            "playerText": self.player_text,
            "teamText": self.team_text,
            "minute": self.minute,
        }


class VerifiedMatchRecord(BaseModel):
    """One curated historical match as delivered by the research process."""

    model_config = ConfigDict(populate_by_name=True)

    home_team_text: str = Field(alias="homeTeamText", min_length=1)
    away_team_text: str = Field(alias="awayTeamText", min_length=1)
    season_year: int = Field(alias="seasonYear")
    date: dt.date
    time: Optional[dt.time] = None
    score: str
    goals: List[GoalRecord] = Field(default_factory=list)
    source_label: Optional[str] = Field(default=None, alias="sourceLabel")

    @field_validator("season_year", mode="before")
    @classmethod
    def _season_label_to_year(cls, value: Any) -> Any:
        # "1992-93" is season year 1993, the year its August fixtures reclassify to.
        if isinstance(value, str) and not value.strip().isdigit():
            _, end = normalize_season(value)
            if end is None:
                raise ValueError(f"Unrecognised season label: {value!r}")
            return end
        return value

    @field_validator("score")
    @classmethod
    def _check_score(cls, value: str) -> str:
        parse_score(value)
        return value.strip()

    @property
    def score_line(self) -> Tuple[int, int]:
        return parse_score(self.score)

    @property
    def expected_goals(self) -> int:
        home, away = self.score_line
        return home + away

    @property
    def label(self) -> str:
        return f"{self.home_team_text} v {self.away_team_text} ({self.date.isoformat()})"
