from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Protocol


@dataclass(frozen=True)
class SamplingConfig:
    temperature: float
    top_p: float | None = None
    top_k: int | None = None


@dataclass
class LLMResponse:
    raw_text: str
    model: str | None = None
    usage: Dict[str, Any] | None = None


class LLMAdapter(Protocol):
    """A schema-constrained completion service.

    Implementations send one request per call and never retry. Transport and
    service failures surface as :class:`~scopeshift.exceptions.OracleError`.
    """

    async def complete(
        self,
        system_instruction: str,
        prompt: str,
        schema: Dict[str, Any],
        sampling: SamplingConfig,
    ) -> LLMResponse:
        raise NotImplementedError
