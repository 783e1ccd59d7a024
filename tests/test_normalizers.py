import pytest

from fixture_reconciliation_engine.normalizers.name_normalizer import (
    clean_text,
    first_token,
    normalize_name,
    token_sort_ratio,
)
from fixture_reconciliation_engine.normalizers.score_normalizer import parse_score
from fixture_reconciliation_engine.normalizers.season_normalizer import normalize_season, season_label


def test_season_normalization():
    assert normalize_season("1992/93") == (1992, 1993)
    assert normalize_season("92-93") == (1992, 1993)
    assert normalize_season("1999-00") == (1999, 2000)
    assert normalize_season("2020") == (2020, 2021)
    assert normalize_season("") == (None, None)
    assert normalize_season("next season") == (None, None)


def test_season_label():
    assert season_label(1993) == "1992-93"
    assert season_label(2000) == "1999-00"


def test_clean_text_and_first_token():
    assert clean_text("  Nott'm   Forest ") == "Nott'm Forest"
    assert first_token("  Sheffield   Wednesday") == "Sheffield"
    assert first_token("") == ""
    assert clean_text(None) == ""


def test_name_normalizer_and_similarity():
    a = normalize_name("Brighton & Hove Albion")
    b = normalize_name("Brighton and Hove Albion")
    assert token_sort_ratio(a, b) > 0.8
    assert normalize_name("Málaga CF") == "malaga cf"
    assert token_sort_ratio("", "arsenal") == 0.0


@pytest.mark.parametrize(
    "score, expected",
    [("2-4", (2, 4)), (" 1 - 0 ", (1, 0)), ("3–3", (3, 3)), ("0:0", (0, 0))],
)
def test_parse_score(score, expected):
    assert parse_score(score) == expected


@pytest.mark.parametrize("score", ["", "2", "two-four", "2-4-1"])
def test_parse_score_rejects_malformed_lines(score):
    with pytest.raises(ValueError):
        parse_score(score)
