"""Single-call entry points for callers that keep their own state.

Each function runs one stage and either returns its typed output or raises
:class:`~scopeshift.exceptions.StageError`. Use
:class:`~scopeshift.orchestrator.PipelineOrchestrator` instead when the stages
should share one evolving scope.
"""

from __future__ import annotations

from typing import Sequence

from scopeshift.adapters.llm_base import LLMAdapter
from scopeshift.config import Settings
from scopeshift.models import Feature, ProposalSet, ScopeAnalysis, ScopeDocument, ScopeProjection, TestPlan
from scopeshift.pipeline_health import HealthPipeline
from scopeshift.pipeline_proposals import ProposalPipeline
from scopeshift.pipeline_scope import ScopePipeline
from scopeshift.pipeline_test_plan import TestPlanPipeline


async def generate_scope(
    scenario: str, adapter: LLMAdapter, settings: Settings | None = None
) -> ScopeDocument:
    return await ScopePipeline(adapter, settings).run(scenario)


async def propose_features(
    features: Sequence[Feature], adapter: LLMAdapter, settings: Settings | None = None
) -> ProposalSet:
    return await ProposalPipeline(adapter, settings).run(features)


async def analyze_scope(
    projection: ScopeProjection, adapter: LLMAdapter, settings: Settings | None = None
) -> ScopeAnalysis:
    return await HealthPipeline(adapter, settings).run(projection)


async def generate_test_plan(
    projection: ScopeProjection, adapter: LLMAdapter, settings: Settings | None = None
) -> TestPlan:
    return await TestPlanPipeline(adapter, settings).run(projection)
