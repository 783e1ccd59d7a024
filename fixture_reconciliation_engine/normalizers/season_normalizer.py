import datetime as dt
import re
from typing import Optional, Tuple

SEASON_LABEL = re.compile(r"^\s*(?P<start>\d{2}|\d{4})\s*(?:[-/]\s*(?P<end>\d{2}|\d{4}))?\s*$")


def _full_year(fragment: str, century_from: Optional[int] = None) -> int:
    if len(fragment) == 4:
        return int(fragment)
    if century_from is not None:
        return century_from // 100 * 100 + int(fragment)
    # bare two-digit years up to 30 are 2000s
    value = int(fragment)
    return 2000 + value if value <= 30 else 1900 + value


def normalize_season(season_name: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """Split a season label such as ``1992-93``, ``92/93`` or ``1992`` into (start, end) years."""
    if not season_name:
        return None, None
    match = SEASON_LABEL.match(season_name)
    if not match:
        return None, None
    start = _full_year(match.group("start"))
    if match.group("end") is None:
        return start, start + 1
    end = _full_year(match.group("end"), century_from=start)
    if end <= start:
        # 1999-00 rolls into the next century
        end = start + 1
    return start, end


def season_label(season_year: int) -> str:
    """``1993`` -> ``1992-93``, the label of the season ending in that year."""
    return f"{season_year - 1}-{season_year % 100:02d}"


def season_year_for_date(match_date: dt.date, start_month: int = 8) -> int:
    """Season year a match belongs to: matches from ``start_month`` on count toward the next year."""
    if match_date.month >= start_month:
        return match_date.year + 1
    return match_date.year
