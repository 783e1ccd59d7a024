from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "reconciliation.yml"

MINUTE_POLICIES = ("reject", "clamp")
SCORE_MISMATCH_POLICIES = ("flag", "skip")


@dataclass(frozen=True)
class ReconciliationConfig:
    good_accuracy_pct: int = 80
    minute_min: int = 1
    minute_max: int = 120
    minute_policy: str = "reject"
    score_mismatch_policy: str = "flag"
    season_start_month: int = 8
    date_window_days: int = 1

    def __post_init__(self) -> None:
        if self.minute_policy not in MINUTE_POLICIES:
            raise ValueError(f"Unknown minute_policy '{self.minute_policy}'")
        if self.score_mismatch_policy not in SCORE_MISMATCH_POLICIES:
            raise ValueError(
                f"Unknown score_mismatch_policy '{self.score_mismatch_policy}'"
            )
        if not 1 <= self.season_start_month <= 12:
            raise ValueError("season_start_month must be a calendar month")
        if self.minute_min > self.minute_max:
            raise ValueError("minute_min must not exceed minute_max")


def build_config(data: Optional[Mapping[str, Any]]) -> ReconciliationConfig:
    data = data or {}
    return ReconciliationConfig(
        good_accuracy_pct=int(data.get("good_accuracy_pct", 80)),
        minute_min=int(data.get("minute_min", 1)),
        minute_max=int(data.get("minute_max", 120)),
        minute_policy=str(data.get("minute_policy", "reject")),
        score_mismatch_policy=str(data.get("score_mismatch_policy", "flag")),
        season_start_month=int(data.get("season_start_month", 8)),
        date_window_days=int(data.get("date_window_days", 1)),
    )


@lru_cache
def get_reconciliation_config(path: Path = CONFIG_PATH) -> ReconciliationConfig:
    data = yaml.safe_load(path.read_text()) if path.exists() else {}
    return build_config(data)


def resolve_config(
    config: Optional[ReconciliationConfig | Mapping[str, Any]],
) -> ReconciliationConfig:
    if config is None:
        return get_reconciliation_config()
    if isinstance(config, ReconciliationConfig):
        return config
    return build_config(config)
