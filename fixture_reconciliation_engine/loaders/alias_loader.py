from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
import yaml

DEFAULT_ALIASES_PATH = Path(__file__).resolve().parents[1] / "config" / "team_aliases.yml"

MAPPING_KEYS = {
    "alternatives": "alternative",
    "historical": "historical",
    "abbreviations": "abbreviation",
    "nicknames": "nickname",
}
CSV_COLUMNS = ["team", "alias_text", "alias_type"]


def _rows_from_mapping(mapping: Dict[str, Dict[str, List[str]]]) -> List[Dict]:
    rows: List[Dict] = []
    for team, variants in mapping.items():
        for key, alias_type in MAPPING_KEYS.items():
            for alias_text in (variants or {}).get(key) or []:
                rows.append(
                    {
                        "team": team,
                        "alias_text": str(alias_text),
                        "alias_type": alias_type,
                        "confidence_score": None,
                    }
                )
    return rows


def _rows_from_csv(path: Path) -> List[Dict]:
    df = pd.read_csv(path, dtype={"team": str, "alias_text": str, "alias_type": str})
    missing = [column for column in CSV_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing columns: {', '.join(missing)}")
    if "confidence_score" not in df.columns:
        df["confidence_score"] = None
    df = df.dropna(subset=CSV_COLUMNS)
    rows: List[Dict] = []
    for _, row in df.iterrows():
        confidence = row.get("confidence_score")
        rows.append(
            {
                "team": row["team"].strip(),
                "alias_text": row["alias_text"].strip(),
                "alias_type": row["alias_type"].strip().lower(),
                "confidence_score": None if pd.isna(confidence) else int(confidence),
            }
        )
    return rows


def load_alias_rows(path: Optional[Union[str, Path]] = None) -> List[Dict]:
    """Read alias seed rows from the YAML mapping or a CSV export."""
    path = Path(path) if path else DEFAULT_ALIASES_PATH
    if path.suffix.lower() == ".csv":
        return _rows_from_csv(path)
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    return _rows_from_mapping(data.get("team_aliases", data))
