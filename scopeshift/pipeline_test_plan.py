from __future__ import annotations

import json
from typing import Any, Dict, List

from scopeshift.adapters.llm_base import LLMAdapter
from scopeshift.config import TEST_PLAN, Settings
from scopeshift.exceptions import NormalizationWarning
from scopeshift.gates.parsers import (
    decode_assertion_value,
    decode_payload,
    encode_if_structured,
    normalize_choice,
    normalize_str_list,
)
from scopeshift.gates.schemas import TEST_PLAN_SCHEMA
from scopeshift.models import Assertion, PlannedTest, ScopeProjection, TestPlan
from scopeshift.pipeline_base import TIER_ALIASES, StagePipeline


def normalize_test(item: Dict[str, Any], warnings: List[NormalizationWarning]) -> PlannedTest:
    """Decode the JSON-in-string fields of one schema-valid test entry.

    ``payload`` falls back to ``{}`` when it is not a JSON object; an assertion
    value that is not JSON is kept as the raw string.
    """
    return PlannedTest(
        id=item["id"],
        tier=item["tier"],
        name=item["name"],
        endpoint=item["endpoint"],
        preconditions=tuple(item.get("preconditions", [])),
        payload=decode_payload(item.get("payload"), warnings, context=f"payload of test {item['id']}"),
        assertions=tuple(
            Assertion(
                type=assertion["type"],
                op=assertion.get("op"),
                value=decode_assertion_value(assertion.get("value")),
            )
            for assertion in item.get("assertions", [])
        ),
    )


class TestPlanPipeline(StagePipeline):
    """Stage 4: one or more API tests per acceptance criterion."""

    __test__ = False

    stage = TEST_PLAN
    error_prefix = "Failed to generate test plan"
    schema_name = TEST_PLAN_SCHEMA
    system_prompt = "test_plan_system.md"

    def __init__(self, adapter: LLMAdapter, settings: Settings | None = None) -> None:
        super().__init__(adapter, settings)
        self.normalization_warnings: List[NormalizationWarning] = []

    def build_prompt(self, projection: ScopeProjection) -> str:
        endpoints = "\n".join(f"  - {endpoint}" for endpoint in self.settings.endpoints)
        return self._render_prompt(
            "test_plan.md",
            {
                "INPUT": json.dumps(projection.to_dict(), indent=2),
                "ENDPOINTS": endpoints,
            },
        )

    async def run(self, projection: ScopeProjection) -> TestPlan:
        self.normalization_warnings = []
        return await self._execute(self.build_prompt(projection))

    def _repair(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        tests = payload.get("tests")
        if not isinstance(tests, list):
            return payload
        for test in tests:
            if not isinstance(test, dict):
                continue
            test["tier"] = normalize_choice(test.get("tier"), TIER_ALIASES)
            if "payload" in test:
                test["payload"] = encode_if_structured(test["payload"])
            if "preconditions" in test:
                test["preconditions"] = normalize_str_list(test["preconditions"])
            assertions = test.get("assertions")
            if not isinstance(assertions, list):
                continue
            for assertion in assertions:
                if not isinstance(assertion, dict):
                    continue
                if assertion.get("op") is None:
                    assertion.pop("op", None)
                if "value" in assertion:
                    assertion["value"] = encode_if_structured(assertion["value"])
        return payload

    def _build(self, payload: Dict[str, Any]) -> TestPlan:
        tests = tuple(normalize_test(item, self.normalization_warnings) for item in payload["tests"])
        self.warnings.extend(str(warning) for warning in self.normalization_warnings)
        return TestPlan(tests=tests)
