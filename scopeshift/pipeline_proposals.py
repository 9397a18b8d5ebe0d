from __future__ import annotations

import json
from typing import Any, Dict, Sequence

from scopeshift.config import PROPOSALS
from scopeshift.gates.parsers import normalize_choice, normalize_str_list
from scopeshift.gates.schemas import PROPOSALS_SCHEMA
from scopeshift.models import Constraints, Feature, ProposalSet
from scopeshift.pipeline_base import TIER_ALIASES, StagePipeline
from scopeshift.projection import seed_features

LEVEL_ALIASES = {
    "low": "low",
    "med": "med",
    "medium": "med",
    "moderate": "med",
    "high": "high",
}


def render_constraints(constraints: Constraints) -> str:
    return "\n".join(
        f"- {key}: {json.dumps(value)}" for key, value in constraints.to_dict().items()
    )


class ProposalPipeline(StagePipeline):
    """Stage 2: propose new candidate features seeded by the existing titles."""

    stage = PROPOSALS
    error_prefix = "Failed to propose features"
    schema_name = PROPOSALS_SCHEMA
    system_prompt = "proposals_system.md"

    def build_prompt(self, features: Sequence[Feature]) -> str:
        seeds = "\n".join(f'- "{title}"' for _, title in seed_features(features))
        return self._render_prompt(
            "proposals.md",
            {
                "SEED_SCENARIOS": seeds,
                "CONSTRAINTS": render_constraints(self.settings.constraints),
            },
        )

    async def run(self, features: Sequence[Feature]) -> ProposalSet:
        if not features:
            raise ValueError("At least one existing feature is required to seed proposals.")
        return await self._execute(self.build_prompt(features))

    def _repair(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        candidates = payload.get("candidates")
        if not isinstance(candidates, list):
            return payload
        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            candidate["tier_suggestion"] = normalize_choice(
                candidate.get("tier_suggestion"), TIER_ALIASES
            )
            candidate["risk"] = normalize_choice(candidate.get("risk"), LEVEL_ALIASES)
            impacts = candidate.get("impacts")
            if isinstance(impacts, dict):
                impacts["cost"] = normalize_choice(impacts.get("cost"), LEVEL_ALIASES)
                for key in ("cold_start_ms", "p99_latency_ms"):
                    value = impacts.get(key)
                    if isinstance(value, (int, float)) and not isinstance(value, bool):
                        impacts[key] = f"{value:+g}"
            for key in ("acs", "depends_on", "conflicts"):
                if key in candidate:
                    candidate[key] = normalize_str_list(candidate[key])
        return payload

    def _build(self, payload: Dict[str, Any]) -> ProposalSet:
        return ProposalSet.from_dict(payload)
