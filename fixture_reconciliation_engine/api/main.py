from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.engine import Engine

from fixture_reconciliation_engine.db.connections import get_engine
from fixture_reconciliation_engine.exceptions import FixtureNotFound, StoreUnavailable
from fixture_reconciliation_engine.matchers.alias_resolver import lookup_team, register_alias
from fixture_reconciliation_engine.pipeline.reconciliation_run import run_batch
from fixture_reconciliation_engine.qa.quality_validator import evaluate
from fixture_reconciliation_engine.validation.schemas import VerifiedMatchRecord

app = FastAPI(title="Fixture Reconciliation API")


@lru_cache
def get_store_engine() -> Engine:
    return get_engine("RECONCILIATION_DB_URL")


class AliasIn(BaseModel):
    alias_text: str = Field(min_length=1)
    alias_type: str = "alternative"
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    source: Optional[str] = None


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/teams/lookup")
def team_lookup(text: str = Query(..., min_length=1), engine: Engine = Depends(get_store_engine)):
    with engine.connect() as conn:
        match = lookup_team(conn, text)
    if match is None:
        raise HTTPException(status_code=404, detail=f"No team alias matches '{text}'")
    return {
        "team_id": match.team_id,
        "canonical_name": match.canonical_name,
        "alias_type": match.alias_type,
        "confidence": match.confidence,
    }


@app.post("/teams/{team_id}/aliases")
def add_alias(team_id: int, alias: AliasIn, engine: Engine = Depends(get_store_engine)):
    try:
        with engine.begin() as conn:
            created = register_alias(
                conn,
                team_id,
                alias.alias_text,
                alias.alias_type,
                confidence=alias.confidence,
                source=alias.source or "api",
            )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"team_id": team_id, "alias_text": alias.alias_text, "created": created}


@app.get("/fixtures/{fixture_id}/quality")
def fixture_quality(
    fixture_id: int,
    expected_goals: int = Query(..., ge=0),
    engine: Engine = Depends(get_store_engine),
):
    try:
        with engine.connect() as conn:
            report = evaluate(conn, fixture_id, expected_goals)
    except FixtureNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return report.to_dict()


@app.post("/reconciliation/run")
def reconcile(records: List[VerifiedMatchRecord], engine: Engine = Depends(get_store_engine)):
    try:
        outcome = run_batch(engine, records)
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return outcome.to_dict()
