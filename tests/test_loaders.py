import json

import pytest
from pydantic import ValidationError

from fixture_reconciliation_engine.loaders.alias_loader import load_alias_rows
from fixture_reconciliation_engine.loaders.batch_loader import load_batch
from fixture_reconciliation_engine.validation.schemas import VerifiedMatchRecord

RECORD = {
    "homeTeamText": "Arsenal",
    "awayTeamText": "Norwich City",
    "seasonYear": "1992-93",
    "date": "1992-08-15",
    "time": "15:00",
    "score": "2 - 4",
    "goals": [{"playerText": "Steve Bould", "teamText": "Arsenal", "minute": 28}],
}


def test_record_schema_accepts_season_labels_and_camel_case():
    record = VerifiedMatchRecord.model_validate(RECORD)

    assert record.season_year == 1993
    assert record.score == "2 - 4"
    assert record.score_line == (2, 4)
    assert record.expected_goals == 6
    assert record.goals[0].player_text == "Steve Bould"
    assert record.label == "Arsenal v Norwich City (1992-08-15)"


def test_record_schema_rejects_malformed_score():
    with pytest.raises(ValidationError):
        VerifiedMatchRecord.model_validate({**RECORD, "score": "two-four"})


def test_goal_minute_may_be_missing():
    record = VerifiedMatchRecord.model_validate(
        {**RECORD, "goals": [{"playerText": "Ruel Fox", "teamText": "Norwich City"}]}
    )

    assert record.goals[0].minute is None


def test_load_batch_reads_json_list(tmp_path):
    path = tmp_path / "batch.json"
    path.write_text(json.dumps([RECORD, {**RECORD, "homeTeamText": "Everton"}]))

    records = load_batch(path)

    assert [record.home_team_text for record in records] == ["Arsenal", "Everton"]


def test_load_batch_reads_yaml_records_key(tmp_path):
    path = tmp_path / "batch.yml"
    path.write_text(
        "records:\n"
        "  - homeTeamText: Arsenal\n"
        "    awayTeamText: Norwich City\n"
        "    seasonYear: 1993\n"
        "    date: 1992-08-15\n"
        "    score: 2-4\n"
    )

    records = load_batch(path)

    assert records[0].season_year == 1993
    assert records[0].goals == []


def test_load_batch_rejects_scalar_payload(tmp_path):
    path = tmp_path / "batch.json"
    path.write_text(json.dumps("not a batch"))

    with pytest.raises(ValueError):
        load_batch(path)


def test_default_alias_mapping_is_packaged():
    rows = load_alias_rows()

    spurs = [row for row in rows if row["alias_text"] == "Spurs"]
    assert spurs and spurs[0]["team"] == "Tottenham Hotspur"
    assert {row["alias_type"] for row in rows} <= {"alternative", "historical", "abbreviation", "nickname"}


def test_alias_rows_from_yaml(tmp_path):
    path = tmp_path / "aliases.yml"
    path.write_text(
        "team_aliases:\n"
        "  Sheffield Wednesday:\n"
        "    alternatives: [Sheff Wed]\n"
        "    nicknames: [Owls]\n"
    )

    rows = load_alias_rows(path)

    assert [(row["alias_text"], row["alias_type"]) for row in rows] == [
        ("Sheff Wed", "alternative"),
        ("Owls", "nickname"),
    ]


def test_alias_rows_from_csv(tmp_path):
    path = tmp_path / "aliases.csv"
    path.write_text(
        "team,alias_text,alias_type,confidence_score\n"
        "Tottenham Hotspur, Spurs ,Alternative,95\n"
        "Arsenal,Gunners,nickname,\n"
        "Everton,,nickname,\n"
    )

    rows = load_alias_rows(path)

    assert rows == [
        {"team": "Tottenham Hotspur", "alias_text": "Spurs", "alias_type": "alternative", "confidence_score": 95},
        {"team": "Arsenal", "alias_text": "Gunners", "alias_type": "nickname", "confidence_score": None},
    ]


def test_alias_csv_requires_columns(tmp_path):
    path = tmp_path / "aliases.csv"
    path.write_text("team,alias_text\nArsenal,Gunners\n")

    with pytest.raises(ValueError):
        load_alias_rows(path)
