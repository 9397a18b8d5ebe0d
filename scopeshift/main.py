from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Sequence

from dotenv import load_dotenv

from scopeshift.adapters.factory import create_adapter
from scopeshift.adapters.mock_adapter import SCENARIOS
from scopeshift.artifacts.writers import (
    write_analysis,
    write_proposals,
    write_scope,
    write_test_plan,
)
from scopeshift.config import (
    ANALYSIS,
    PROPOSALS,
    SCOPE,
    STAGES,
    TEST_PLAN,
    apply_frontmatter,
    load_settings,
    parse_frontmatter,
)
from scopeshift.exceptions import ConfigurationError
from scopeshift.orchestrator import PipelineOrchestrator, StageSlot, StageStatus
from scopeshift.utils.io import read_text, write_text
from scopeshift.utils.runs import RunPaths, prepare_run_dirs

logger = logging.getLogger(__name__)

WRITERS = {
    SCOPE: write_scope,
    PROPOSALS: write_proposals,
    ANALYSIS: write_analysis,
    TEST_PLAN: write_test_plan,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scopeshift",
        description="Turn a product scenario into features, acceptance criteria, tests and code stubs.",
    )
    parser.add_argument("--mode", choices=["mock", "live"], default="live")
    parser.add_argument("--provider", choices=["gemini", "openai"], help="Live oracle provider")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--scenario", help="Scenario text")
    source.add_argument("--scenario-file", type=Path, help="File holding the scenario text")
    parser.add_argument(
        "--stages",
        default=",".join(STAGES),
        help=f"Comma-separated stages to run (default: {','.join(STAGES)})",
    )
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--mock-scenario", choices=SCENARIOS, default="default")
    parser.add_argument("--runs-dir", type=Path, default=Path("runs"))
    parser.add_argument("--verbose", action="store_true")
    return parser


def parse_stages(value: str) -> List[str]:
    stages = [item.strip() for item in value.split(",") if item.strip()]
    unknown = [item for item in stages if item not in STAGES]
    if unknown:
        raise ConfigurationError(
            f"Unknown stage(s): {', '.join(unknown)}. Expected: {', '.join(STAGES)}."
        )
    return stages


def write_outputs(
    orchestrator: PipelineOrchestrator, stages: Sequence[str], paths: RunPaths
) -> None:
    for stage in stages:
        pipeline = orchestrator.pipelines[stage]
        if pipeline.last_response is not None:
            write_text(paths.raw_dir / f"{stage}.txt", pipeline.last_response.raw_text)
        slot = orchestrator.slots[stage]
        if slot.status is StageStatus.SUCCEEDED:
            WRITERS[stage](paths.artifacts_dir, slot.output)


def summarize(slots: Dict[str, StageSlot], stages: Sequence[str]) -> bool:
    ok = True
    for stage in stages:
        slot = slots[stage]
        line = f"[{stage}] {slot.status.value}"
        if slot.error:
            line += f": {slot.error}"
        print(line)
        ok = ok and slot.status is StageStatus.SUCCEEDED
    return ok


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    load_dotenv()

    try:
        stages = parse_stages(args.stages)
        settings = load_settings(args.config)
        if args.scenario_file is not None:
            if not args.scenario_file.exists():
                raise ConfigurationError(f"Scenario file not found: {args.scenario_file}")
            meta, scenario = parse_frontmatter(read_text(args.scenario_file))
            settings = apply_frontmatter(settings, meta)
        else:
            scenario = args.scenario
        if SCOPE not in stages:
            logger.info("[scopeshift] adding stage 'scope'; later stages need a generated scope")
            stages = [SCOPE, *stages]
        if not scenario.strip():
            raise ConfigurationError("Scenario text is empty.")
        provider = "mock" if args.mode == "mock" else (args.provider or settings.provider)
        if provider == "mock" and args.mode == "live":
            logger.info("[scopeshift] provider is 'mock'; running offline")
        adapter = create_adapter(provider, settings.model, args.mock_scenario)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    paths = prepare_run_dirs(args.runs_dir)
    write_text(paths.run_dir / "inputs" / "scenario.md", scenario)

    orchestrator = PipelineOrchestrator(adapter, settings)
    slots = asyncio.run(orchestrator.run_stages(scenario, stages))
    write_outputs(orchestrator, stages, paths)
    ok = summarize(slots, stages)
    print(f"Artifacts written to {paths.run_dir}")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
