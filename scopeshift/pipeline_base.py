from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from scopeshift.adapters.llm_base import LLMAdapter, LLMResponse
from scopeshift.config import Settings
from scopeshift.exceptions import OracleError, StageError
from scopeshift.gates.parsers import extract_json
from scopeshift.gates.schemas import load_schema, validate_payload
from scopeshift.utils.io import read_text

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"

TIER_ALIASES = {"v0": "V0", "mvp": "V0", "v1": "V1", "roadmap": "V1"}


class StagePipeline:
    """One schema-constrained oracle turn with its repair and validation gates.

    Subclasses set the class attributes, build the user prompt in ``run`` and
    convert the validated payload in ``_build``. Every failure past the input
    checks is re-raised as :class:`StageError` carrying ``error_prefix``.
    """

    stage = ""
    error_prefix = ""
    schema_name = ""
    system_prompt = ""

    def __init__(self, adapter: LLMAdapter, settings: Settings | None = None) -> None:
        self.adapter = adapter
        self.settings = settings or Settings()
        self.last_response: LLMResponse | None = None
        self.warnings: List[str] = []

    async def _execute(self, prompt: str) -> Any:
        self.last_response = None
        self.warnings = []
        try:
            payload = await self._run_turn(prompt)
            return self._build(payload)
        except Exception as exc:
            logger.error("[%s] %s: %s", self.stage, self.error_prefix, exc)
            raise StageError(self.stage, f"{self.error_prefix}: {exc}") from exc

    async def _run_turn(self, prompt: str) -> Dict[str, Any]:
        schema = load_schema(self.schema_name)
        response = await self.adapter.complete(
            self._read_prompt(self.system_prompt),
            prompt,
            schema,
            self.settings.sampling_for(self.stage),
        )
        self.last_response = response
        try:
            parsed = extract_json(response.raw_text)
        except ValueError as exc:
            raise OracleError(str(exc)) from exc
        parsed = self._repair(parsed)
        validate_payload(parsed, schema, self.stage)
        return parsed

    def _repair(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return payload

    def _build(self, payload: Dict[str, Any]) -> Any:
        raise NotImplementedError

    def _warn(self, note: str) -> None:
        logger.warning("[%s] %s", self.stage, note)
        self.warnings.append(note)

    def _read_prompt(self, name: str) -> str:
        return read_text(PROMPTS_DIR / name).strip()

    def _render_prompt(self, name: str, values: Dict[str, str]) -> str:
        rendered = self._read_prompt(name)
        for key, value in values.items():
            rendered = rendered.replace("{{" + key + "}}", value)
        return rendered
