"""Stateful sequencing of the four stages against one evolving scope.

The orchestrator keeps the committed :class:`ScopeDocument` and one
:class:`StageSlot` per stage. Stage failures end up in the slot; they are never
raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable

from scopeshift.adapters.llm_base import LLMAdapter
from scopeshift.config import ANALYSIS, PROPOSALS, SCOPE, STAGES, TEST_PLAN, Settings
from scopeshift.exceptions import StageError
from scopeshift.models import ScopeDocument
from scopeshift.pipeline_base import StagePipeline
from scopeshift.pipeline_health import HealthPipeline
from scopeshift.pipeline_proposals import ProposalPipeline
from scopeshift.pipeline_scope import ScopePipeline
from scopeshift.pipeline_test_plan import TestPlanPipeline
from scopeshift.projection import project

logger = logging.getLogger(__name__)

DOWNSTREAM = (PROPOSALS, ANALYSIS, TEST_PLAN)


class StageStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class StageSlot:
    status: StageStatus = StageStatus.IDLE
    output: Any = None
    error: str | None = None

    def reset(self) -> None:
        self.status = StageStatus.IDLE
        self.output = None
        self.error = None

    def start(self) -> None:
        self.reset()
        self.status = StageStatus.RUNNING

    def succeed(self, output: Any) -> None:
        self.status = StageStatus.SUCCEEDED
        self.output = output
        self.error = None

    def fail(self, error: str) -> None:
        self.status = StageStatus.FAILED
        self.output = None
        self.error = error


class PipelineOrchestrator:
    def __init__(self, adapter: LLMAdapter, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.pipelines: Dict[str, StagePipeline] = {
            SCOPE: ScopePipeline(adapter, self.settings),
            PROPOSALS: ProposalPipeline(adapter, self.settings),
            ANALYSIS: HealthPipeline(adapter, self.settings),
            TEST_PLAN: TestPlanPipeline(adapter, self.settings),
        }
        self.slots: Dict[str, StageSlot] = {stage: StageSlot() for stage in STAGES}
        self._document: ScopeDocument | None = None
        self._generation = 0
        self._scope_runs = 0

    @property
    def document(self) -> ScopeDocument | None:
        return self._document

    def can_run(self, stage: str) -> bool:
        """Whether ``stage`` may start now.

        Stage 1 is always allowed. The others need a committed document, no
        Stage 1 in flight and none of their siblings running. Proposals
        additionally need at least one feature to seed from.
        """
        if stage == SCOPE:
            return True
        if self._document is None:
            return False
        if self.slots[SCOPE].status is StageStatus.RUNNING:
            return False
        if any(self.slots[name].status is StageStatus.RUNNING for name in DOWNSTREAM):
            return False
        if stage == PROPOSALS and not self._document.features:
            return False
        return True

    async def generate_scope(self, scenario: str) -> StageSlot:
        slot = self.slots[SCOPE]
        if not scenario or not scenario.strip():
            logger.info("[orchestrator] scope: empty scenario, nothing to do")
            return slot

        self._scope_runs += 1
        run_id = self._scope_runs
        slot.start()
        try:
            document = await self.pipelines[SCOPE].run(scenario)
        except Exception as exc:
            if run_id == self._scope_runs:
                slot.fail(self._describe_failure(SCOPE, exc))
            return slot

        if run_id != self._scope_runs:
            logger.info("[orchestrator] scope: run %s superseded, result discarded", run_id)
            return slot

        self._document = document
        self._generation += 1
        for stage in DOWNSTREAM:
            self.slots[stage].reset()
        slot.succeed(document)
        logger.info(
            "[orchestrator] scope: committed %s features (generation %s)",
            len(document.features),
            self._generation,
        )
        return slot

    async def propose_features(self) -> StageSlot:
        return await self._run_downstream(
            PROPOSALS, lambda document: self.pipelines[PROPOSALS].run(document.features)
        )

    async def analyze_scope(self) -> StageSlot:
        return await self._run_downstream(
            ANALYSIS,
            lambda document: self.pipelines[ANALYSIS].run(
                project(document, self.settings.constraints)
            ),
        )

    async def generate_test_plan(self) -> StageSlot:
        return await self._run_downstream(
            TEST_PLAN,
            lambda document: self.pipelines[TEST_PLAN].run(
                project(document, self.settings.constraints)
            ),
        )

    async def run_stages(self, scenario: str, stages: Iterable[str] = STAGES) -> Dict[str, StageSlot]:
        """Run the requested stages one after another, Stage 1 first."""
        requested = set(stages)
        if SCOPE in requested:
            await self.generate_scope(scenario)
        runners = {
            PROPOSALS: self.propose_features,
            ANALYSIS: self.analyze_scope,
            TEST_PLAN: self.generate_test_plan,
        }
        for stage in DOWNSTREAM:
            if stage in requested:
                await runners[stage]()
        return self.slots

    async def _run_downstream(
        self, stage: str, invoke: Callable[[ScopeDocument], Awaitable[Any]]
    ) -> StageSlot:
        slot = self.slots[stage]
        if not self.can_run(stage):
            logger.info("[orchestrator] %s: not eligible, skipped", stage)
            return slot

        generation = self._generation
        document = self._document
        slot.start()
        error: str | None = None
        output: Any = None
        try:
            output = await invoke(document)
        except Exception as exc:
            error = self._describe_failure(stage, exc)

        if generation != self._generation:
            logger.info("[orchestrator] %s: scope replaced mid-run, result discarded", stage)
            return slot
        if error is not None:
            slot.fail(error)
        else:
            slot.succeed(output)
        return slot

    def _describe_failure(self, stage: str, exc: Exception) -> str:
        if isinstance(exc, StageError):
            return str(exc)
        # Raised before the pipeline could wrap it, e.g. while building the prompt.
        logger.error("[orchestrator] %s: unexpected %s: %s", stage, type(exc).__name__, exc)
        return f"{self.pipelines[stage].error_prefix}: {exc}"
