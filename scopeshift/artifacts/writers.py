from __future__ import annotations

import json
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import List, Set

from scopeshift.models import ProposalSet, ScopeAnalysis, ScopeDocument, TestPlan
from scopeshift.utils.io import write_json, write_text


def safe_file_name(name: str, fallback: str) -> str:
    """Reduce an oracle-supplied file name to a bare base name."""
    base = PureWindowsPath(PurePosixPath(name).name).name.strip()
    if base in {"", ".", ".."}:
        return fallback
    return base


def unique_file_name(name: str, feature_id: str, used: Set[str]) -> str:
    """Suffix ``name`` with the feature id, then a counter, until it is unused."""
    candidate = name
    if candidate in used:
        path = PurePosixPath(name)
        tag = safe_file_name(feature_id, "feature")
        candidate = f"{path.stem}_{tag}{path.suffix}"
        counter = 2
        while candidate in used:
            candidate = f"{path.stem}_{tag}_{counter}{path.suffix}"
            counter += 1
    used.add(candidate)
    return candidate


def write_scope(artifacts_dir: Path, document: ScopeDocument) -> None:
    write_json(artifacts_dir / "scope.json", document.to_dict())

    lines: List[str] = ["# Features", ""]
    for tier in ("V0", "V1"):
        features = [feature for feature in document.features if feature.tier == tier]
        if not features:
            continue
        lines.extend([f"## {tier}", ""])
        for feature in features:
            lines.append(f"### {feature.title} ({feature.id})")
            lines.extend(f"- **{ac.id}**: {ac.description}" for ac in feature.acceptance_criteria)
            lines.append("")
    if not document.features:
        lines.append("_No features generated._")
    write_text(artifacts_dir / "features.md", "\n".join(lines).strip() + "\n")

    used: Set[str] = set()
    for index, spec in enumerate(document.test_specs, start=1):
        name = safe_file_name(spec.file_name, f"test_spec_{index}.py")
        name = unique_file_name(name, spec.feature_id, used)
        write_text(artifacts_dir / "tests" / name, spec.code)
    used = set()
    for index, template in enumerate(document.code_templates, start=1):
        name = safe_file_name(template.file_name, f"template_{index}.txt")
        name = unique_file_name(name, template.feature_id, used)
        write_text(artifacts_dir / "code" / name, template.code)


def write_proposals(artifacts_dir: Path, proposals: ProposalSet) -> None:
    write_json(artifacts_dir / "proposals.json", proposals.to_dict())

    lines: List[str] = ["# Proposed Features", ""]
    if not proposals.candidates:
        lines.append("_No further suggestions._")
    for candidate in proposals.candidates:
        impacts = candidate.impacts
        lines.extend(
            [
                f"## {candidate.title} ({candidate.id}) [{candidate.tier_suggestion}]",
                "",
                candidate.rationale,
                "",
                f"Risk: {candidate.risk} | Cost: {impacts.cost} | "
                f"Cold start: {impacts.cold_start_ms} ms | p99: {impacts.p99_latency_ms} ms | "
                f"Constraints OK: {'yes' if candidate.constraints_ok else 'no'}",
                "",
                "### Acceptance Criteria",
                *[f"- {ac}" for ac in candidate.acs],
                "",
            ]
        )
        if candidate.depends_on:
            lines.extend(["### Depends On", *[f"- {item}" for item in candidate.depends_on], ""])
        if candidate.conflicts:
            lines.extend(["### Conflicts", *[f"- {item}" for item in candidate.conflicts], ""])
    write_text(artifacts_dir / "proposals.md", "\n".join(lines).strip() + "\n")


def write_analysis(artifacts_dir: Path, analysis: ScopeAnalysis) -> None:
    write_json(artifacts_dir / "analysis.json", analysis.to_dict())

    lines: List[str] = ["# Scope Health", ""]
    if analysis.score is not None:
        lines.extend([f"Score: {analysis.score:g}/100", ""])
    if analysis.notes:
        lines.extend([analysis.notes, ""])
    if analysis.healthy:
        lines.append("_No issues found._")
    for issue in analysis.issues:
        location = issue.location
        where = location.type
        if location.feature_id:
            where += f" @ {location.feature_id}"
        if location.ac_index is not None:
            where += f" AC#{location.ac_index}"
        lines.append(f"- [{issue.severity}] {issue.id} ({where}): {issue.message}")
        lines.append(f"  - Fix: {issue.proposed_fix.summary}")
        if issue.proposed_fix.updated_text:
            lines.append(f"  - Suggested text: {issue.proposed_fix.updated_text}")
    write_text(artifacts_dir / "issues.md", "\n".join(lines).strip() + "\n")


def write_test_plan(artifacts_dir: Path, plan: TestPlan) -> None:
    write_json(artifacts_dir / "test_plan.json", plan.to_dict())

    lines: List[str] = ["# Test Plan", ""]
    if not plan.tests:
        lines.append("_No tests generated._")
    for test in plan.tests:
        lines.extend(
            [
                f"## {test.id} `{test.name}` [{test.tier}]",
                "",
                f"Endpoint: `{test.endpoint}`",
                "",
            ]
        )
        if test.preconditions:
            lines.extend(["Preconditions:", *[f"- {item}" for item in test.preconditions], ""])
        lines.extend(["Payload:", "```json", json.dumps(test.payload, indent=2), "```", ""])
        lines.append("Assertions:")
        for assertion in test.assertions:
            op = f" {assertion.op}" if assertion.op else ""
            lines.append(f"- {assertion.type}{op} {json.dumps(assertion.value)}")
        lines.append("")
    write_text(artifacts_dir / "test_plan.md", "\n".join(lines).strip() + "\n")
