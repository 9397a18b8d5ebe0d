"""Structural contracts for every stage's oracle output.

The contracts live as JSON Schema documents next to this package
(``scopeshift/schemas/*.schema.json``). They are handed unmodified to the
oracle adapters and reused here as the local validation gate.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from jsonschema import ValidationError, validate

from scopeshift.exceptions import OracleError
from scopeshift.utils.io import read_text

SCHEMAS_DIR = Path(__file__).resolve().parents[1] / "schemas"

SCOPE_SCHEMA = "scope.schema.json"
PROPOSALS_SCHEMA = "proposals.schema.json"
SCOPE_ANALYSIS_SCHEMA = "scope_analysis.schema.json"
TEST_PLAN_SCHEMA = "test_plan.schema.json"

_CACHE: Dict[str, Dict[str, Any]] = {}


def load_schema(name: str) -> Dict[str, Any]:
    """Return the parsed schema ``name``. The returned dict is shared; do not mutate it."""
    if name not in _CACHE:
        _CACHE[name] = json.loads(read_text(SCHEMAS_DIR / name))
    return _CACHE[name]


def validate_payload(payload: Any, schema: Dict[str, Any], label: str) -> None:
    try:
        validate(instance=payload, schema=schema)
    except ValidationError as exc:
        path = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        snippet = json.dumps(payload, ensure_ascii=False)[:300]
        raise OracleError(
            f"{label} did not match schema at {path}: {exc.message}. Snippet: {snippet}"
        ) from exc
