from __future__ import annotations

import dataclasses

import pytest

from scopeshift.models import (
    Constraints,
    Issue,
    ProposalSet,
    ScopeAnalysis,
    ScopeDocument,
)


def test_scope_document_wire_round_trip(sample_document: ScopeDocument) -> None:
    wire = sample_document.to_dict()
    assert wire["features"][0]["acceptanceCriteria"][0] == {
        "id": "ac-001-1",
        "description": "Posting a title creates a todo.",
    }
    assert wire["testSpecs"][0]["fileName"] == "test_add_todo.py"
    assert ScopeDocument.from_dict(wire) == sample_document


def test_scope_document_is_immutable(sample_document: ScopeDocument) -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        sample_document.features = ()  # type: ignore[misc]
    assert isinstance(sample_document.features, tuple)


def test_feature_ids(sample_document: ScopeDocument) -> None:
    assert sample_document.feature_ids() == ["feat-001", "feat-002"]


def test_constraints_defaults() -> None:
    constraints = Constraints()
    assert constraints.to_dict() == {
        "cold_start_ms": 400,
        "auth_required": False,
        "p99_latency_ms": 800,
    }


def test_constraints_without_p99_omit_it() -> None:
    constraints = Constraints.from_dict({"cold_start_ms": 250, "p99_latency_ms": None})
    assert constraints.to_dict() == {"cold_start_ms": 250, "auth_required": False}


def test_proposal_optional_fields_stay_absent() -> None:
    proposals = ProposalSet.from_dict(
        {
            "candidates": [
                {
                    "id": "P-1",
                    "title": "Tags",
                    "tier_suggestion": "V0",
                    "rationale": "Group todos.",
                    "impacts": {"cold_start_ms": "+0", "p99_latency_ms": "+2", "cost": "low"},
                    "risk": "low",
                    "acs": ["A todo can carry tags."],
                    "constraints_ok": True,
                }
            ]
        }
    )
    candidate = proposals.candidates[0]
    assert candidate.depends_on is None
    assert candidate.conflicts is None
    assert "depends_on" not in candidate.to_dict()


def test_issue_location_optional_fields() -> None:
    issue = Issue.from_dict(
        {
            "id": "I-1",
            "severity": "warning",
            "message": "Duplicate",
            "location": {"type": "DUPLICATE", "feature_id": "feat-2"},
            "proposed_fix": {"summary": "Merge"},
        }
    )
    assert issue.location.ac_index is None
    assert issue.proposed_fix.action is None
    assert issue.to_dict()["location"] == {"type": "DUPLICATE", "feature_id": "feat-2"}


def test_scope_analysis_healthy_flag() -> None:
    assert ScopeAnalysis.from_dict({"issues": []}).healthy
    assert ScopeAnalysis.from_dict({"issues": []}).score is None
