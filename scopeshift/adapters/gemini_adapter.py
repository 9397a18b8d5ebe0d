from __future__ import annotations

import logging
import os
from typing import Any, Dict

from google import genai
from google.genai import types

from scopeshift.adapters.llm_base import LLMAdapter, LLMResponse, SamplingConfig
from scopeshift.exceptions import ConfigurationError, OracleError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-pro"

_TYPE_MAP = {
    "object": types.Type.OBJECT,
    "array": types.Type.ARRAY,
    "string": types.Type.STRING,
    "number": types.Type.NUMBER,
    "integer": types.Type.INTEGER,
    "boolean": types.Type.BOOLEAN,
}


def to_gemini_schema(schema: Dict[str, Any]) -> types.Schema:
    """Translate a JSON Schema document into Gemini's response schema type."""
    kwargs: Dict[str, Any] = {"type": _TYPE_MAP[schema["type"]]}
    if "description" in schema:
        kwargs["description"] = schema["description"]
    if "enum" in schema:
        kwargs["enum"] = list(schema["enum"])
    if "properties" in schema:
        kwargs["properties"] = {
            name: to_gemini_schema(child) for name, child in schema["properties"].items()
        }
        kwargs["property_ordering"] = list(schema["properties"])
    if "required" in schema:
        kwargs["required"] = list(schema["required"])
    if "items" in schema:
        kwargs["items"] = to_gemini_schema(schema["items"])
    if "minItems" in schema:
        kwargs["min_items"] = schema["minItems"]
    if "minimum" in schema:
        kwargs["minimum"] = schema["minimum"]
    if "maximum" in schema:
        kwargs["maximum"] = schema["maximum"]
    return types.Schema(**kwargs)


class GeminiAdapter(LLMAdapter):
    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set.")

        self.client = genai.Client(api_key=api_key)
        self.model = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)

    async def complete(
        self,
        system_instruction: str,
        prompt: str,
        schema: Dict[str, Any],
        sampling: SamplingConfig,
    ) -> LLMResponse:
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=to_gemini_schema(schema),
            temperature=sampling.temperature,
            top_p=sampling.top_p,
            top_k=sampling.top_k,
        )
        logger.debug("[gemini] model=%s schema=%s", self.model, schema.get("title"))
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except Exception as exc:
            raise OracleError(f"Gemini request failed: {exc}") from exc

        text = getattr(response, "text", None)
        if not text:
            raise OracleError("Gemini returned empty content.")

        usage = getattr(response, "usage_metadata", None)
        usage_payload = None
        if usage:
            usage_payload = {
                "prompt_tokens": getattr(usage, "prompt_token_count", None),
                "completion_tokens": getattr(usage, "candidates_token_count", None),
                "total_tokens": getattr(usage, "total_token_count", None),
            }
            logger.info(
                "[gemini] model=%s prompt_tokens=%s completion_tokens=%s total_tokens=%s",
                self.model,
                usage_payload["prompt_tokens"],
                usage_payload["completion_tokens"],
                usage_payload["total_tokens"],
            )
        return LLMResponse(raw_text=text.strip(), model=self.model, usage=usage_payload)
