import datetime as dt

import pytest

from fixture_reconciliation_engine.corrector.fixture_corrector import correct_fixture
from fixture_reconciliation_engine.exceptions import FixtureNotFound, SeasonNotFound
from fixture_reconciliation_engine.matchers.fixture_locator import load_fixture
from fixture_reconciliation_engine.normalizers.season_normalizer import season_year_for_date

from conftest import ARSENAL_NORWICH, MAN_UTD_IPSWICH, SEASON_1993


def test_date_is_overwritten_and_stored_time_kept(conn):
    result = correct_fixture(conn, ARSENAL_NORWICH, "1992-08-14", source="archive")

    assert result.changed is True
    assert result.fixture.match_timestamp == dt.datetime(1992, 8, 14, 15, 0)
    assert result.previous_timestamp == dt.datetime(1992, 8, 15, 15, 0)
    assert load_fixture(conn, ARSENAL_NORWICH).match_timestamp == dt.datetime(1992, 8, 14, 15, 0)


def test_verified_time_replaces_stored_time(conn):
    result = correct_fixture(conn, ARSENAL_NORWICH, dt.date(1992, 8, 15), "17:30")

    assert result.fixture.match_timestamp == dt.datetime(1992, 8, 15, 17, 30)


def test_matching_data_changes_nothing(conn):
    result = correct_fixture(conn, ARSENAL_NORWICH, "1992-08-15")

    assert result.changed is False
    assert result.season_reclassified is False
    assert load_fixture(conn, ARSENAL_NORWICH).match_timestamp == dt.datetime(1992, 8, 15, 15, 0)


def test_score_mismatch_is_reported_not_corrected(conn):
    result = correct_fixture(conn, ARSENAL_NORWICH, "1992-08-15", authoritative_score=(3, 4))

    assert result.score_mismatch is not None
    assert result.score_mismatch.authoritative_score == (3, 4)
    assert result.score_mismatch.stored_score == (2, 4)
    stored = load_fixture(conn, ARSENAL_NORWICH)
    assert (stored.home_score, stored.away_score) == (2, 4)


def test_matching_score_raises_no_warning(conn):
    result = correct_fixture(conn, ARSENAL_NORWICH, "1992-08-15", authoritative_score=(2, 4))

    assert result.score_mismatch is None


def test_misfiled_fixture_moves_to_the_season_of_its_date(conn):
    result = correct_fixture(conn, MAN_UTD_IPSWICH, "1992-08-22")

    assert result.season_reclassified is True
    assert result.previous_season_year == 1992
    assert result.fixture.season_year == 1993
    assert result.fixture.season_id == SEASON_1993


def test_missing_target_season_fails_without_writing(conn):
    with pytest.raises(SeasonNotFound) as excinfo:
        correct_fixture(conn, ARSENAL_NORWICH, "1993-08-14")

    assert excinfo.value.year == 1994
    assert load_fixture(conn, ARSENAL_NORWICH).match_timestamp == dt.datetime(1992, 8, 15, 15, 0)


def test_july_date_keeps_calendar_year_season(conn):
    result = correct_fixture(conn, ARSENAL_NORWICH, "1993-07-20")

    assert result.fixture.season_year == 1993
    assert result.season_reclassified is False


def test_unknown_fixture_is_not_found(conn):
    with pytest.raises(FixtureNotFound):
        correct_fixture(conn, 999, "1992-08-15")


@pytest.mark.parametrize(
    "match_date, expected",
    [
        (dt.date(1993, 7, 31), 1993),
        (dt.date(1992, 8, 1), 1993),
        (dt.date(1992, 12, 26), 1993),
        (dt.date(1993, 1, 1), 1993),
        (dt.date(1993, 5, 8), 1993),
    ],
)
def test_season_year_rule(match_date, expected):
    assert season_year_for_date(match_date) == expected
