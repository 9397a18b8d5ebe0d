from __future__ import annotations

import pytest

from scopeshift.exceptions import OracleError
from scopeshift.gates.schemas import (
    PROPOSALS_SCHEMA,
    SCOPE_ANALYSIS_SCHEMA,
    SCOPE_SCHEMA,
    TEST_PLAN_SCHEMA,
    load_schema,
    validate_payload,
)


@pytest.mark.parametrize(
    ("name", "title", "required"),
    [
        (SCOPE_SCHEMA, "scope", ["features", "testSpecs", "codeTemplates"]),
        (PROPOSALS_SCHEMA, "proposals", ["candidates"]),
        (SCOPE_ANALYSIS_SCHEMA, "scope_analysis", ["issues"]),
        (TEST_PLAN_SCHEMA, "test_plan", ["tests"]),
    ],
)
def test_registry_declares_top_level_contract(name: str, title: str, required: list[str]) -> None:
    schema = load_schema(name)
    assert schema["title"] == title
    assert schema["type"] == "object"
    assert schema["required"] == required


def test_load_schema_is_cached() -> None:
    assert load_schema(SCOPE_SCHEMA) is load_schema(SCOPE_SCHEMA)


def test_scope_schema_requires_acceptance_criteria() -> None:
    feature = load_schema(SCOPE_SCHEMA)["properties"]["features"]["items"]
    assert feature["properties"]["acceptanceCriteria"]["minItems"] == 1
    assert feature["properties"]["tier"]["enum"] == ["V0", "V1"]


def test_validate_payload_accepts_conforming_payload() -> None:
    validate_payload({"issues": [], "score": 90}, load_schema(SCOPE_ANALYSIS_SCHEMA), "analysis")


def test_validate_payload_reports_path_of_mismatch() -> None:
    payload = {
        "issues": [
            {
                "id": "I-1",
                "severity": "fatal",
                "message": "m",
                "location": {"type": "X"},
                "proposed_fix": {"summary": "s"},
            }
        ]
    }
    with pytest.raises(OracleError, match="issues/0/severity"):
        validate_payload(payload, load_schema(SCOPE_ANALYSIS_SCHEMA), "analysis")


def test_validate_payload_missing_required_field() -> None:
    with pytest.raises(OracleError, match="'tests' is a required property"):
        validate_payload({}, load_schema(TEST_PLAN_SCHEMA), "test_plan")
