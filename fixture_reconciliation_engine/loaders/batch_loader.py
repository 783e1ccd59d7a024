import json
from pathlib import Path
from typing import Any, List, Union

import yaml

from fixture_reconciliation_engine.validation.schemas import VerifiedMatchRecord


def _read_payload(path: Path) -> Any:
    text = path.read_text()
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def load_batch(path: Union[str, Path]) -> List[VerifiedMatchRecord]:
    """Read verified match records from a JSON or YAML file.

    The file holds either a list of records or a mapping with a ``records`` key.
    """
    path = Path(path)
    payload = _read_payload(path)
    if isinstance(payload, dict):
        payload = payload.get("records", [])
    if not isinstance(payload, list):
        raise ValueError(f"{path} does not contain a list of records")
    return [VerifiedMatchRecord.model_validate(item) for item in payload]
