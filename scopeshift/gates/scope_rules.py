"""Deterministic scope checks run alongside the oracle's health analysis.

These cover the subset of health rules that can be decided without
judgement: near-duplicate titles, features lacking acceptance criteria,
login requirements under ``auth_required=false``, public links that also demand
an email address, and V0 features that lean on external integrations.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Dict, Iterable, List, Tuple

from scopeshift.models import Issue, IssueLocation, ProposedFix, ScopeProjection

DUPLICATE = "DUPLICATE"
MISSING_AC = "MISSING_AC"
CONFLICT_AUTH = "CONFLICT_AUTH"
CONFLICT_EMAIL = "CONFLICT_EMAIL"
V0_EXTERNAL = "V0_EXTERNAL"

DUPLICATE_THRESHOLD = 0.8

LOGIN_PATTERN = re.compile(
    r"\b(log ?in|logged in|sign ?in|signed in|authenticat\w*|password|account required)\b",
    re.IGNORECASE,
)
PUBLIC_LINK_PATTERN = re.compile(
    r"\bpublic(ly)?\b.*\b(link|url|page)\b|\bshare(d|able)? link\b", re.IGNORECASE
)
EMAIL_REQUIRED_PATTERN = re.compile(
    r"\be-?mail\b.*\b(required|mandatory)\b|\brequire[sd]?\b.*\be-?mail\b", re.IGNORECASE
)
EXTERNAL_PATTERN = re.compile(
    r"\b(e-?mail|sms|push notifications?|maps?|geocod\w*|stripe|paypal|payments?|"
    r"third[- ]party|external api|webhooks?|database|oauth)\b",
    re.IGNORECASE,
)


def normalize_title(title: str) -> str:
    return " ".join(re.sub(r"[^a-z0-9]+", " ", title.lower()).split())


def title_similarity(first: str, second: str) -> float:
    return SequenceMatcher(None, normalize_title(first), normalize_title(second)).ratio()


def evaluate(projection: ScopeProjection) -> List[Issue]:
    """Run every local rule over ``projection`` and return the issues found."""
    findings: List[Tuple[str, str, str, IssueLocation, ProposedFix]] = []
    findings.extend(_duplicates(projection))
    findings.extend(_missing_acceptance(projection))
    findings.extend(_auth_conflicts(projection))
    findings.extend(_email_conflicts(projection))
    findings.extend(_v0_external(projection))
    return [
        Issue(
            id=f"local-{index}",
            severity=severity,
            message=message,
            location=location,
            proposed_fix=fix,
        )
        for index, (_, severity, message, location, fix) in enumerate(findings, start=1)
    ]


def merge_issues(reported: Iterable[Issue], local: Iterable[Issue]) -> Tuple[Issue, ...]:
    """Append local issues the oracle did not already report for the same feature."""
    reported = tuple(reported)
    seen = {
        (issue.location.type.strip().upper(), issue.location.feature_id) for issue in reported
    }
    extra = tuple(
        issue for issue in local if (issue.location.type, issue.location.feature_id) not in seen
    )
    return reported + extra


def _indexed_acceptance(projection: ScopeProjection) -> Iterable[Tuple[str, int, str]]:
    counters: Dict[str, int] = {}
    for entry in projection.acceptance:
        index = counters.get(entry.feature, 0)
        counters[entry.feature] = index + 1
        yield entry.feature, index, entry.text


def _duplicates(projection: ScopeProjection):
    features = projection.features
    for i, first in enumerate(features):
        for second in features[i + 1 :]:
            if title_similarity(first.title, second.title) < DUPLICATE_THRESHOLD:
                continue
            yield (
                DUPLICATE,
                "warning",
                f"Feature '{second.title}' ({second.id}) duplicates '{first.title}' ({first.id}).",
                IssueLocation(type=DUPLICATE, feature_id=second.id),
                ProposedFix(
                    summary=f"Merge {second.id} into {first.id}.",
                    action="merge",
                ),
            )


def _missing_acceptance(projection: ScopeProjection):
    covered = {entry.feature for entry in projection.acceptance}
    for feature in projection.features:
        if feature.id in covered:
            continue
        yield (
            MISSING_AC,
            "critical",
            f"Feature '{feature.title}' ({feature.id}) has no acceptance criteria.",
            IssueLocation(type=MISSING_AC, feature_id=feature.id),
            ProposedFix(summary="Add at least one testable acceptance criterion.", action="add_ac"),
        )


def _auth_conflicts(projection: ScopeProjection):
    if projection.constraints.auth_required:
        return
    for feature_id, index, text in _indexed_acceptance(projection):
        if not LOGIN_PATTERN.search(text):
            continue
        yield (
            CONFLICT_AUTH,
            "critical",
            f"Acceptance criterion requires login but auth_required is false: '{text}'",
            IssueLocation(type=CONFLICT_AUTH, feature_id=feature_id, ac_index=index),
            ProposedFix(
                summary="Drop the login requirement or enable auth_required.",
                action="modify",
            ),
        )


def _email_conflicts(projection: ScopeProjection):
    entries = list(_indexed_acceptance(projection))
    if not any(PUBLIC_LINK_PATTERN.search(text) for _, _, text in entries):
        return
    for feature_id, index, text in entries:
        if not EMAIL_REQUIRED_PATTERN.search(text):
            continue
        yield (
            CONFLICT_EMAIL,
            "warning",
            f"Public link access conflicts with a required email: '{text}'",
            IssueLocation(type=CONFLICT_EMAIL, feature_id=feature_id, ac_index=index),
            ProposedFix(
                summary="Make the email optional or defer email collection to V1.",
                action="modify",
            ),
        )


def _v0_external(projection: ScopeProjection):
    v0_ids = {feature.id for feature in projection.features if feature.tier == "V0"}
    flagged = set()
    for feature_id, index, text in _indexed_acceptance(projection):
        if feature_id not in v0_ids or feature_id in flagged:
            continue
        match = EXTERNAL_PATTERN.search(text)
        if not match:
            continue
        flagged.add(feature_id)
        yield (
            V0_EXTERNAL,
            "warning",
            f"V0 feature {feature_id} depends on an external integration ({match.group(0)}).",
            IssueLocation(type=V0_EXTERNAL, feature_id=feature_id, ac_index=index),
            ProposedFix(summary="Defer this capability to V1.", action="defer"),
        )
