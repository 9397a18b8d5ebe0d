from __future__ import annotations

from typing import Any, Dict, List

from scopeshift.config import SCOPE
from scopeshift.gates.parsers import normalize_choice
from scopeshift.gates.schemas import SCOPE_SCHEMA
from scopeshift.models import ScopeDocument
from scopeshift.pipeline_base import TIER_ALIASES, StagePipeline


class ScopePipeline(StagePipeline):
    """Stage 1: turn a scenario into a ScopeDocument."""

    stage = SCOPE
    error_prefix = "Failed to generate scope"
    schema_name = SCOPE_SCHEMA
    system_prompt = "scope_system.md"

    @property
    def system_instruction(self) -> str:
        return self._read_prompt(self.system_prompt)

    async def run(self, scenario: str) -> ScopeDocument:
        if not scenario or not scenario.strip():
            raise ValueError("Scenario text must not be empty.")
        return await self._execute(scenario.strip())

    def _repair(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        features = payload.get("features")
        if not isinstance(features, list):
            return payload

        kept: List[Any] = []
        dropped: List[str] = []
        for feature in features:
            if not isinstance(feature, dict):
                kept.append(feature)
                continue
            feature["tier"] = normalize_choice(feature.get("tier"), TIER_ALIASES)
            criteria = feature.get("acceptanceCriteria")
            if isinstance(criteria, list) and criteria:
                kept.append(feature)
                continue
            dropped.append(str(feature.get("id")))
            self._warn(
                f"Dropped feature {feature.get('id')!r} ({feature.get('title')!r}): "
                "no acceptance criteria."
            )
        payload["features"] = kept

        if dropped:
            for key in ("testSpecs", "codeTemplates"):
                items = payload.get(key)
                if isinstance(items, list):
                    payload[key] = [
                        item
                        for item in items
                        if not (isinstance(item, dict) and item.get("featureId") in dropped)
                    ]
        return payload

    def _build(self, payload: Dict[str, Any]) -> ScopeDocument:
        return ScopeDocument.from_dict(payload)
