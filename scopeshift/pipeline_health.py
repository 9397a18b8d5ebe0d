from __future__ import annotations

import dataclasses
import json
from typing import Any, Dict

from scopeshift.config import ANALYSIS
from scopeshift.gates import scope_rules
from scopeshift.gates.parsers import normalize_choice
from scopeshift.gates.schemas import SCOPE_ANALYSIS_SCHEMA
from scopeshift.models import ScopeAnalysis, ScopeProjection
from scopeshift.pipeline_base import StagePipeline

SEVERITY_ALIASES = {
    "critical": "critical",
    "error": "critical",
    "high": "critical",
    "warning": "warning",
    "warn": "warning",
    "medium": "warning",
    "info": "info",
    "low": "info",
}


class HealthPipeline(StagePipeline):
    """Stage 3: review the current scope for duplicates, conflicts and gaps.

    The oracle applies the full rule set; when ``Settings.local_rules`` is on,
    the deterministic rules in :mod:`scopeshift.gates.scope_rules` run as well
    and fill in whatever the oracle did not report.
    """

    stage = ANALYSIS
    error_prefix = "Failed to analyze scope"
    schema_name = SCOPE_ANALYSIS_SCHEMA
    system_prompt = "analysis_system.md"

    _projection: ScopeProjection | None = None

    def build_prompt(self, projection: ScopeProjection) -> str:
        return self._render_prompt(
            "analysis.md", {"INPUT": json.dumps(projection.to_dict(), indent=2)}
        )

    async def run(self, projection: ScopeProjection) -> ScopeAnalysis:
        self._projection = projection
        return await self._execute(self.build_prompt(projection))

    def _repair(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        issues = payload.get("issues")
        if isinstance(issues, list):
            for issue in issues:
                if isinstance(issue, dict):
                    issue["severity"] = normalize_choice(issue.get("severity"), SEVERITY_ALIASES)
        score = payload.get("score")
        if isinstance(score, (int, float)) and not 0 <= score <= 100:
            self._warn(f"Dropped out-of-range score {score}.")
            payload.pop("score")
        return payload

    def _build(self, payload: Dict[str, Any]) -> ScopeAnalysis:
        analysis = ScopeAnalysis.from_dict(payload)
        if not self.settings.local_rules:
            return analysis
        local = scope_rules.evaluate(self._projection)
        return dataclasses.replace(
            analysis, issues=scope_rules.merge_issues(analysis.issues, local)
        )
