from __future__ import annotations

import copy

from scopeshift.models import Constraints, ScopeDocument
from scopeshift.projection import project, seed_features


def test_project_flattens_acceptance_in_order(sample_document: ScopeDocument) -> None:
    projection = project(sample_document, Constraints())
    assert [item.to_dict() for item in projection.features] == [
        {"id": "feat-001", "title": "Add todo", "tier": "V0"},
        {"id": "feat-002", "title": "Share list", "tier": "V1"},
    ]
    assert [(item.feature, item.id) for item in projection.acceptance] == [
        ("feat-001", "ac-001-1"),
        ("feat-001", "ac-001-2"),
        ("feat-002", "ac-002-1"),
    ]
    assert projection.acceptance[1].text == "Empty titles are rejected with 400."


def test_project_is_idempotent_and_pure(sample_document: ScopeDocument) -> None:
    before = copy.deepcopy(sample_document.to_dict())
    constraints = Constraints()
    first = project(sample_document, constraints)
    second = project(sample_document, constraints)
    assert first == second
    assert first.to_dict() == second.to_dict()
    assert sample_document.to_dict() == before


def test_project_embeds_constraints(sample_document: ScopeDocument) -> None:
    projection = project(sample_document, Constraints(auth_required=True))
    assert projection.to_dict()["constraints"] == {
        "cold_start_ms": 400,
        "auth_required": True,
        "p99_latency_ms": 800,
    }


def test_project_empty_document() -> None:
    projection = project(ScopeDocument(), Constraints())
    assert projection.features == ()
    assert projection.acceptance == ()


def test_seed_features_sends_only_ids_and_titles(sample_document: ScopeDocument) -> None:
    assert seed_features(sample_document.features) == [
        ("feat-001", "Add todo"),
        ("feat-002", "Share list"),
    ]
