"""Shared test fixtures for scopeshift tests."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pytest

from scopeshift.adapters.llm_base import LLMAdapter, LLMResponse, SamplingConfig
from scopeshift.models import (
    AcceptanceCriterion,
    CodeTemplate,
    Feature,
    ScopeDocument,
    TestSpec,
)


@dataclass
class ScriptedAdapter(LLMAdapter):
    """Oracle double that replays queued replies and records every request.

    A queued ``dict`` is sent as JSON, a ``str`` verbatim and an exception is
    raised.
    """

    replies: List[Any] = field(default_factory=list)
    calls: List[Dict[str, Any]] = field(default_factory=list)

    async def complete(
        self,
        system_instruction: str,
        prompt: str,
        schema: Dict[str, Any],
        sampling: SamplingConfig,
    ) -> LLMResponse:
        self.calls.append(
            {
                "system_instruction": system_instruction,
                "prompt": prompt,
                "schema": schema,
                "sampling": sampling,
            }
        )
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return LLMResponse(raw_text=reply, model="scripted")


@pytest.fixture
def scripted():
    """Factory building a ScriptedAdapter from a list of replies."""

    def _build(*replies: Any) -> ScriptedAdapter:
        return ScriptedAdapter(replies=list(replies))

    return _build


@pytest.fixture
def sample_document() -> ScopeDocument:
    """Two features: one V0 with two ACs, one V1 with a single AC."""
    return ScopeDocument(
        features=(
            Feature(
                id="feat-001",
                title="Add todo",
                tier="V0",
                acceptance_criteria=(
                    AcceptanceCriterion(id="ac-001-1", description="Posting a title creates a todo."),
                    AcceptanceCriterion(id="ac-001-2", description="Empty titles are rejected with 400."),
                ),
            ),
            Feature(
                id="feat-002",
                title="Share list",
                tier="V1",
                acceptance_criteria=(
                    AcceptanceCriterion(id="ac-002-1", description="A public link shows the list read-only."),
                ),
            ),
        ),
        test_specs=(
            TestSpec(feature_id="feat-001", file_name="test_add_todo.py", code="def test_add(): ...\n"),
        ),
        code_templates=(
            CodeTemplate(
                feature_id="feat-001",
                file_name="todos.py",
                language="python",
                code="TODOS = []\n",
            ),
        ),
    )


def scope_payload(*features: Dict[str, Any]) -> Dict[str, Any]:
    return {"features": list(features), "testSpecs": [], "codeTemplates": []}


def feature_payload(feature_id: str, title: str, tier: str = "V0", acs: List[str] | None = None) -> Dict[str, Any]:
    acs = ["Does the thing."] if acs is None else acs
    return {
        "id": feature_id,
        "title": title,
        "tier": tier,
        "acceptanceCriteria": [
            {"id": f"{feature_id}-ac-{index}", "description": text}
            for index, text in enumerate(acs, start=1)
        ],
    }


@pytest.fixture
def scope_reply():
    return scope_payload


@pytest.fixture
def feature_reply():
    return feature_payload
