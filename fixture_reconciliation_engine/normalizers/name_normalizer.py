import re
import unicodedata
from typing import Optional

from rapidfuzz import fuzz


PUNCT_PATTERN = re.compile(r"[^\w\s]")
WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_text(value: Optional[str]) -> str:
    """Trim and collapse internal whitespace, keeping case and punctuation."""
    if not value:
        return ""
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def first_token(value: Optional[str]) -> str:
    text = clean_text(value)
    return text.split(" ", 1)[0] if text else ""


def normalize_name(name: Optional[str]) -> str:
    if not name:
        return ""
    text = unicodedata.normalize("NFKD", name)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = text.lower().strip()
    text = PUNCT_PATTERN.sub(" ", text)
    text = WHITESPACE_PATTERN.sub(" ", text)
    return text.strip()


def token_sort_ratio(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    return fuzz.token_sort_ratio(a, b) / 100.0
