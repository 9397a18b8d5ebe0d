"""Typed domain records for every stage of the pipeline.

Each record converts from the oracle's wire shape with ``from_dict`` (the
payload is expected to have passed schema validation already) and back with
``to_dict``. Sequences are stored as tuples and the dataclasses are frozen, so
a generated document cannot be edited in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

TIERS = ("V0", "V1")
LEVELS = ("low", "med", "high")
SEVERITIES = ("critical", "warning", "info")


def _optional_tuple(values: Optional[List[str]]) -> Optional[Tuple[str, ...]]:
    if values is None:
        return None
    return tuple(values)


@dataclass(frozen=True)
class AcceptanceCriterion:
    id: str
    description: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AcceptanceCriterion":
        return cls(id=data["id"], description=data["description"])

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "description": self.description}


@dataclass(frozen=True)
class Feature:
    id: str
    title: str
    tier: str
    acceptance_criteria: Tuple[AcceptanceCriterion, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Feature":
        return cls(
            id=data["id"],
            title=data["title"],
            tier=data["tier"],
            acceptance_criteria=tuple(
                AcceptanceCriterion.from_dict(item)
                for item in data.get("acceptanceCriteria", [])
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "tier": self.tier,
            "acceptanceCriteria": [ac.to_dict() for ac in self.acceptance_criteria],
        }


@dataclass(frozen=True)
class TestSpec:
    __test__ = False

    feature_id: str
    file_name: str
    code: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestSpec":
        return cls(feature_id=data["featureId"], file_name=data["fileName"], code=data["code"])

    def to_dict(self) -> Dict[str, Any]:
        return {"featureId": self.feature_id, "fileName": self.file_name, "code": self.code}


@dataclass(frozen=True)
class CodeTemplate:
    feature_id: str
    file_name: str
    language: str
    code: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodeTemplate":
        return cls(
            feature_id=data["featureId"],
            file_name=data["fileName"],
            language=data["language"],
            code=data["code"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureId": self.feature_id,
            "fileName": self.file_name,
            "language": self.language,
            "code": self.code,
        }


@dataclass(frozen=True)
class ScopeDocument:
    features: Tuple[Feature, ...] = ()
    test_specs: Tuple[TestSpec, ...] = ()
    code_templates: Tuple[CodeTemplate, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScopeDocument":
        return cls(
            features=tuple(Feature.from_dict(item) for item in data.get("features", [])),
            test_specs=tuple(TestSpec.from_dict(item) for item in data.get("testSpecs", [])),
            code_templates=tuple(
                CodeTemplate.from_dict(item) for item in data.get("codeTemplates", [])
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "features": [feature.to_dict() for feature in self.features],
            "testSpecs": [spec.to_dict() for spec in self.test_specs],
            "codeTemplates": [template.to_dict() for template in self.code_templates],
        }

    def feature_ids(self) -> List[str]:
        return [feature.id for feature in self.features]


@dataclass(frozen=True)
class Impacts:
    cold_start_ms: str
    p99_latency_ms: str
    cost: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Impacts":
        return cls(
            cold_start_ms=data["cold_start_ms"],
            p99_latency_ms=data["p99_latency_ms"],
            cost=data["cost"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cold_start_ms": self.cold_start_ms,
            "p99_latency_ms": self.p99_latency_ms,
            "cost": self.cost,
        }


@dataclass(frozen=True)
class ProposedFeature:
    id: str
    title: str
    tier_suggestion: str
    rationale: str
    impacts: Impacts
    risk: str
    acs: Tuple[str, ...]
    constraints_ok: bool
    depends_on: Optional[Tuple[str, ...]] = None
    conflicts: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposedFeature":
        return cls(
            id=data["id"],
            title=data["title"],
            tier_suggestion=data["tier_suggestion"],
            rationale=data["rationale"],
            impacts=Impacts.from_dict(data["impacts"]),
            risk=data["risk"],
            acs=tuple(data.get("acs", [])),
            constraints_ok=data["constraints_ok"],
            depends_on=_optional_tuple(data.get("depends_on")),
            conflicts=_optional_tuple(data.get("conflicts")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "tier_suggestion": self.tier_suggestion,
            "rationale": self.rationale,
            "impacts": self.impacts.to_dict(),
            "risk": self.risk,
            "acs": list(self.acs),
            "constraints_ok": self.constraints_ok,
        }
        if self.depends_on is not None:
            payload["depends_on"] = list(self.depends_on)
        if self.conflicts is not None:
            payload["conflicts"] = list(self.conflicts)
        return payload


@dataclass(frozen=True)
class ProposalSet:
    candidates: Tuple[ProposedFeature, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposalSet":
        return cls(
            candidates=tuple(ProposedFeature.from_dict(item) for item in data.get("candidates", []))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"candidates": [candidate.to_dict() for candidate in self.candidates]}


@dataclass(frozen=True)
class IssueLocation:
    type: str
    feature_id: Optional[str] = None
    ac_index: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IssueLocation":
        return cls(
            type=data["type"],
            feature_id=data.get("feature_id"),
            ac_index=data.get("ac_index"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type}
        if self.feature_id is not None:
            payload["feature_id"] = self.feature_id
        if self.ac_index is not None:
            payload["ac_index"] = self.ac_index
        return payload


@dataclass(frozen=True)
class ProposedFix:
    summary: str
    action: Optional[str] = None
    updated_text: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposedFix":
        return cls(
            summary=data["summary"],
            action=data.get("action"),
            updated_text=data.get("updated_text"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"summary": self.summary}
        if self.action is not None:
            payload["action"] = self.action
        if self.updated_text is not None:
            payload["updated_text"] = self.updated_text
        return payload


@dataclass(frozen=True)
class Issue:
    id: str
    severity: str
    message: str
    location: IssueLocation
    proposed_fix: ProposedFix

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Issue":
        return cls(
            id=data["id"],
            severity=data["severity"],
            message=data["message"],
            location=IssueLocation.from_dict(data["location"]),
            proposed_fix=ProposedFix.from_dict(data["proposed_fix"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "severity": self.severity,
            "message": self.message,
            "location": self.location.to_dict(),
            "proposed_fix": self.proposed_fix.to_dict(),
        }


@dataclass(frozen=True)
class ScopeAnalysis:
    issues: Tuple[Issue, ...] = ()
    score: Optional[float] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScopeAnalysis":
        return cls(
            issues=tuple(Issue.from_dict(item) for item in data.get("issues", [])),
            score=data.get("score"),
            notes=data.get("notes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"issues": [issue.to_dict() for issue in self.issues]}
        if self.score is not None:
            payload["score"] = self.score
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload

    @property
    def healthy(self) -> bool:
        return not self.issues


@dataclass(frozen=True)
class Assertion:
    type: str
    value: Any
    op: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "value": self.value}
        if self.op is not None:
            payload["op"] = self.op
        return payload


@dataclass(frozen=True)
class PlannedTest:
    """One entry of a generated test plan.

    ``payload`` and assertion values are already decoded; see
    :mod:`scopeshift.pipeline_test_plan` for how they are built.
    """

    id: str
    tier: str
    name: str
    endpoint: str
    preconditions: Tuple[str, ...] = ()
    payload: Dict[str, Any] = field(default_factory=dict)
    assertions: Tuple[Assertion, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tier": self.tier,
            "name": self.name,
            "endpoint": self.endpoint,
            "preconditions": list(self.preconditions),
            "payload": self.payload,
            "assertions": [assertion.to_dict() for assertion in self.assertions],
        }


@dataclass(frozen=True)
class TestPlan:
    __test__ = False

    tests: Tuple[PlannedTest, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"tests": [test.to_dict() for test in self.tests]}


@dataclass(frozen=True)
class Constraints:
    cold_start_ms: float = 400
    auth_required: bool = False
    p99_latency_ms: Optional[float] = 800

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Constraints":
        defaults = cls()
        return cls(
            cold_start_ms=data.get("cold_start_ms", defaults.cold_start_ms),
            auth_required=bool(data.get("auth_required", defaults.auth_required)),
            p99_latency_ms=data.get("p99_latency_ms", defaults.p99_latency_ms),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "cold_start_ms": self.cold_start_ms,
            "auth_required": self.auth_required,
        }
        if self.p99_latency_ms is not None:
            payload["p99_latency_ms"] = self.p99_latency_ms
        return payload


@dataclass(frozen=True)
class FeatureInput:
    id: str
    title: str
    tier: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "tier": self.tier}


@dataclass(frozen=True)
class AcceptanceInput:
    feature: str
    id: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"feature": self.feature, "id": self.id, "text": self.text}


@dataclass(frozen=True)
class ScopeProjection:
    features: Tuple[FeatureInput, ...]
    acceptance: Tuple[AcceptanceInput, ...]
    constraints: Constraints

    def to_dict(self) -> Dict[str, Any]:
        return {
            "features": [item.to_dict() for item in self.features],
            "acceptance": [item.to_dict() for item in self.acceptance],
            "constraints": self.constraints.to_dict(),
        }
