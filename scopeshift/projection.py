"""Derived inputs for the stages that run against an existing scope."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from scopeshift.models import (
    AcceptanceInput,
    Constraints,
    Feature,
    FeatureInput,
    ScopeDocument,
    ScopeProjection,
)


def project(document: ScopeDocument, constraints: Constraints) -> ScopeProjection:
    """Narrow ``document`` to the shape used by health analysis and test planning.

    Acceptance criteria are flattened across features in document order, each
    tagged with the id of the feature that owns it.
    """
    features = tuple(
        FeatureInput(id=feature.id, title=feature.title, tier=feature.tier)
        for feature in document.features
    )
    acceptance = tuple(
        AcceptanceInput(feature=feature.id, id=ac.id, text=ac.description)
        for feature in document.features
        for ac in feature.acceptance_criteria
    )
    return ScopeProjection(features=features, acceptance=acceptance, constraints=constraints)


def seed_features(features: Sequence[Feature]) -> List[Tuple[str, str]]:
    """Project features to the (id, title) pairs sent as proposal seeds."""
    return [(feature.id, feature.title) for feature in features]
