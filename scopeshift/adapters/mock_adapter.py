from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from scopeshift.adapters.llm_base import LLMAdapter, LLMResponse, SamplingConfig
from scopeshift.exceptions import OracleError

SCENARIOS = ("default", "empty", "fail", "invalid_json")


@dataclass
class MockRequest:
    system_instruction: str
    prompt: str
    schema_title: str | None
    sampling: SamplingConfig


@dataclass
class MockAdapter(LLMAdapter):
    """Offline oracle returning canned payloads keyed by the schema title.

    ``scenario`` selects the behaviour: ``default`` returns a small RSVP-style
    plan, ``empty`` returns empty collections, ``fail`` raises ``OracleError``
    and ``invalid_json`` returns text that is not JSON.
    """

    scenario: str = "default"
    calls: List[MockRequest] = field(default_factory=list)

    async def complete(
        self,
        system_instruction: str,
        prompt: str,
        schema: Dict[str, Any],
        sampling: SamplingConfig,
    ) -> LLMResponse:
        title = schema.get("title")
        self.calls.append(MockRequest(system_instruction, prompt, title, sampling))
        if self.scenario == "fail":
            raise OracleError("Mock oracle unavailable.")
        if self.scenario == "invalid_json":
            return LLMResponse(raw_text="Sure! Here is your plan.", model="mock")
        payload = self._build_payload(title)
        return LLMResponse(raw_text=json.dumps(payload), model="mock")

    def _build_payload(self, title: str | None) -> Dict[str, Any]:
        empty = self.scenario == "empty"
        if title == "proposals":
            if empty:
                return {"candidates": []}
            return {
                "candidates": [
                    {
                        "id": "PROPOSED-1",
                        "title": "Event capacity limit",
                        "tier_suggestion": "V0",
                        "rationale": "Prevents overbooking without new required fields.",
                        "impacts": {"cold_start_ms": "+0", "p99_latency_ms": "+5", "cost": "low"},
                        "risk": "low",
                        "acs": ["RSVP is rejected with 409 once capacity is reached."],
                        "depends_on": ["feat-001"],
                        "constraints_ok": True,
                    },
                    {
                        "id": "PROPOSED-2",
                        "title": "Email reminders",
                        "tier_suggestion": "V1",
                        "rationale": "Reminds attendees a day before the event.",
                        "impacts": {"cold_start_ms": "+40", "p99_latency_ms": "+120", "cost": "med"},
                        "risk": "med",
                        "acs": ["A reminder email is queued 24h before start."],
                        "constraints_ok": True,
                        "conflicts": ["Public RSVP does not collect email addresses."],
                    },
                ]
            }
        if title == "scope_analysis":
            if empty:
                return {"issues": [], "score": 100, "notes": "No issues found."}
            return {
                "issues": [
                    {
                        "id": "ISSUE-1",
                        "severity": "info",
                        "message": "Attendee export format is not specified beyond plain text.",
                        "location": {"type": "GAP", "feature_id": "feat-002"},
                        "proposed_fix": {
                            "summary": "State the line format of attendees.txt.",
                            "action": "modify",
                        },
                    }
                ],
                "score": 88,
                "notes": "Scope is small and testable.",
            }
        if title == "test_plan":
            if empty:
                return {"tests": []}
            return {
                "tests": [
                    {
                        "id": "T-1",
                        "tier": "V0",
                        "name": "test_create_event_returns_id",
                        "endpoint": "POST /events",
                        "preconditions": ["empty in-memory store"],
                        "payload": "{\"title\": \"Meetup\", \"starts_at\": \"2025-01-01T18:00:00Z\"}",
                        "assertions": [
                            {"type": "status", "op": "==", "value": "201"},
                            {"type": "json_has_keys", "value": "[\"id\", \"title\"]"},
                        ],
                    },
                    {
                        "id": "T-2",
                        "tier": "V0",
                        "name": "test_rsvp_appears_in_attendees",
                        "endpoint": "GET /events/{id}/attendees.txt",
                        "preconditions": ["event exists", "one RSVP submitted"],
                        "payload": "{}",
                        "assertions": [
                            {"type": "status", "op": "==", "value": "200"},
                            {"type": "body_contains", "value": "Ada"},
                        ],
                    },
                ]
            }
        if empty:
            return {"features": [], "testSpecs": [], "codeTemplates": []}
        return {
            "features": [
                {
                    "id": "feat-001",
                    "title": "Create event",
                    "tier": "V0",
                    "acceptanceCriteria": [
                        {"id": "ac-001-1", "description": "POST /events returns 201 with an event id."},
                        {"id": "ac-001-2", "description": "Title is required; empty title returns 400."},
                    ],
                },
                {
                    "id": "feat-002",
                    "title": "RSVP and attendee list",
                    "tier": "V0",
                    "acceptanceCriteria": [
                        {"id": "ac-002-1", "description": "POST /events/{id}/rsvp with a name records the attendee."},
                        {"id": "ac-002-2", "description": "GET /events/{id}/attendees.txt lists one name per line."},
                    ],
                },
                {
                    "id": "feat-003",
                    "title": "Calendar invites",
                    "tier": "V1",
                    "acceptanceCriteria": [
                        {"id": "ac-003-1", "description": "Attendees can download an .ics file for the event."},
                    ],
                },
            ],
            "testSpecs": [
                {
                    "featureId": "feat-001",
                    "fileName": "test_create_event.py",
                    "code": "def test_create_event_returns_id(client):\n    response = client.post('/events', json={'title': 'Meetup'})\n    assert response.status_code == 201\n",
                }
            ],
            "codeTemplates": [
                {
                    "featureId": "feat-001",
                    "fileName": "events.py",
                    "language": "python",
                    "code": "EVENTS = {}\n\n\ndef create_event(title: str) -> str:\n    raise NotImplementedError\n",
                }
            ],
        }
