from __future__ import annotations

from scopeshift.gates import scope_rules
from scopeshift.models import (
    AcceptanceInput,
    Constraints,
    FeatureInput,
    Issue,
    IssueLocation,
    ProposedFix,
    ScopeProjection,
)


def _projection(features, acceptance, auth_required: bool = False) -> ScopeProjection:
    return ScopeProjection(
        features=tuple(FeatureInput(*item) for item in features),
        acceptance=tuple(AcceptanceInput(*item) for item in acceptance),
        constraints=Constraints(auth_required=auth_required),
    )


def _types(issues):
    return [issue.location.type for issue in issues]


def test_title_similarity_ignores_case_and_punctuation() -> None:
    assert scope_rules.title_similarity("Create Event!", "create event") == 1.0
    assert scope_rules.title_similarity("Create event", "Export attendees") < 0.8


def test_duplicate_titles_are_flagged_on_the_later_feature() -> None:
    projection = _projection(
        [("f1", "Create event", "V0"), ("f2", "Create events", "V0")],
        [("f1", "a1", "POST creates."), ("f2", "a2", "POST creates.")],
    )
    issues = scope_rules.evaluate(projection)
    assert _types(issues) == ["DUPLICATE"]
    assert issues[0].location.feature_id == "f2"


def test_missing_acceptance_criteria() -> None:
    projection = _projection([("f1", "Create event", "V0")], [])
    issues = scope_rules.evaluate(projection)
    assert _types(issues) == ["MISSING_AC"]
    assert issues[0].severity == "critical"


def test_auth_conflict_only_when_auth_not_required() -> None:
    features = [("f1", "Dashboard", "V0")]
    acceptance = [("f1", "a1", "Shows totals."), ("f1", "a2", "Requires the user to sign in first.")]
    issues = scope_rules.evaluate(_projection(features, acceptance))
    assert _types(issues) == ["CONFLICT_AUTH"]
    assert issues[0].location.ac_index == 1
    assert scope_rules.evaluate(_projection(features, acceptance, auth_required=True)) == []


def test_public_link_with_required_email_conflicts() -> None:
    projection = _projection(
        [("f1", "Public page", "V1"), ("f2", "RSVP", "V1")],
        [
            ("f1", "a1", "Anyone with the public link can view the event."),
            ("f2", "a2", "Email is required to RSVP."),
        ],
    )
    issues = scope_rules.evaluate(projection)
    assert _types(issues) == ["CONFLICT_EMAIL"]
    assert issues[0].location.feature_id == "f2"


def test_v0_feature_with_external_integration() -> None:
    projection = _projection(
        [("f1", "Reminders", "V0"), ("f2", "Maps", "V1")],
        [
            ("f1", "a1", "Sends an SMS reminder."),
            ("f1", "a2", "Also sends a push notification."),
            ("f2", "a3", "Shows the venue on maps."),
        ],
    )
    issues = scope_rules.evaluate(projection)
    assert _types(issues) == ["V0_EXTERNAL"]
    assert issues[0].proposed_fix.action == "defer"


def test_ids_are_sequential() -> None:
    projection = _projection([("f1", "A", "V0"), ("f2", "B", "V0")], [])
    assert [issue.id for issue in scope_rules.evaluate(projection)] == ["local-1", "local-2"]


def test_merge_skips_issues_already_reported() -> None:
    reported = Issue(
        id="I-1",
        severity="critical",
        message="m",
        location=IssueLocation(type="missing_ac", feature_id="f1"),
        proposed_fix=ProposedFix(summary="s"),
    )
    projection = _projection([("f1", "A", "V0"), ("f2", "B", "V0")], [])
    merged = scope_rules.merge_issues([reported], scope_rules.evaluate(projection))
    assert [(issue.id, issue.location.feature_id) for issue in merged] == [("I-1", "f1"), ("local-2", "f2")]
