import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from fixture_reconciliation_engine.db.connections import get_engine, init_db
from fixture_reconciliation_engine.exceptions import StoreUnavailable
from fixture_reconciliation_engine.loaders.alias_loader import load_alias_rows
from fixture_reconciliation_engine.loaders.batch_loader import load_batch
from fixture_reconciliation_engine.matchers.alias_resolver import seed_aliases
from fixture_reconciliation_engine.pipeline.reconciliation_run import run_batch
from fixture_reconciliation_engine.validation.config import get_reconciliation_config


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile verified historical match records against stored fixtures"
    )
    parser.add_argument("--batch", required=True, help="JSON or YAML file of verified records")
    parser.add_argument("--aliases", help="Alias seed file (YAML mapping or CSV) registered before the run")
    parser.add_argument("--output", help="Write per-record results to this JSON file")
    parser.add_argument("--config", help="Alternative reconciliation.yml")
    parser.add_argument("--db-url-env", default="RECONCILIATION_DB_URL")
    parser.add_argument("--init-db", action="store_true", help="Create missing tables first")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    config = get_reconciliation_config(Path(args.config)) if args.config else get_reconciliation_config()
    records = load_batch(args.batch)
    engine = get_engine(args.db_url_env)
    if args.init_db:
        init_db(engine)
    if args.aliases:
        with engine.begin() as conn:
            seed_aliases(conn, load_alias_rows(args.aliases))

    try:
        outcome = run_batch(engine, records, config=config)
    except StoreUnavailable as exc:
        logging.getLogger(__name__).error("%s", exc)
        if args.output and exc.outcome is not None:
            Path(args.output).write_text(json.dumps(exc.outcome.to_dict(), indent=2))
        return 2
    finally:
        engine.dispose()

    if args.output:
        Path(args.output).write_text(json.dumps(outcome.to_dict(), indent=2))
    print(f"Reconciliation run completed run_id={outcome.run_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
