import re
from typing import Tuple

SCORE_PATTERN = re.compile(r"^\s*(?P<home>\d{1,2})\s*[-–:]\s*(?P<away>\d{1,2})\s*$")


def parse_score(score: str) -> Tuple[int, int]:
    if not score:
        raise ValueError("Score is empty")
    match = SCORE_PATTERN.match(score)
    if not match:
        raise ValueError(f"Unrecognised score line: {score!r}")
    return int(match.group("home")), int(match.group("away"))


def format_score(home: int, away: int) -> str:
    return f"{home}-{away}"
