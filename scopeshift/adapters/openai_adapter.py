from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict

from openai import AsyncOpenAI, OpenAIError

from scopeshift.adapters.llm_base import LLMAdapter, LLMResponse, SamplingConfig
from scopeshift.exceptions import ConfigurationError, OracleError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIAdapter(LLMAdapter):
    """Chat-completions oracle.

    JSON mode does not take a schema, so the schema is appended to the system
    message. ``top_k`` has no equivalent here and is ignored.
    """

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set.")
        self.client = AsyncOpenAI(api_key=self.api_key, max_retries=0)
        self.model = model or os.getenv("OPENAI_MODEL", DEFAULT_MODEL)

    async def complete(
        self,
        system_instruction: str,
        prompt: str,
        schema: Dict[str, Any],
        sampling: SamplingConfig,
    ) -> LLMResponse:
        system = (
            f"{system_instruction}\n\n"
            "Respond with a single JSON object that validates against this JSON Schema:\n"
            f"{json.dumps(schema)}"
        )
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": sampling.temperature,
            "response_format": {"type": "json_object"},
        }
        if sampling.top_p is not None:
            request["top_p"] = sampling.top_p
        try:
            response = await self.client.chat.completions.create(**request)
        except OpenAIError as exc:
            raise OracleError(f"OpenAI request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise OracleError("OpenAI returned empty content.")

        usage = getattr(response, "usage", None)
        usage_payload = None
        if usage:
            usage_payload = {
                "prompt_tokens": getattr(usage, "prompt_tokens", None),
                "completion_tokens": getattr(usage, "completion_tokens", None),
                "total_tokens": getattr(usage, "total_tokens", None),
            }
            logger.info(
                "[openai] model=%s prompt_tokens=%s completion_tokens=%s total_tokens=%s",
                self.model,
                usage_payload["prompt_tokens"],
                usage_payload["completion_tokens"],
                usage_payload["total_tokens"],
            )
        else:
            logger.info("[openai] usage not provided by SDK")
        return LLMResponse(raw_text=content, model=self.model, usage=usage_payload)
