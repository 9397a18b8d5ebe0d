from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import types

from scopeshift.adapters.gemini_adapter import DEFAULT_MODEL, GeminiAdapter, to_gemini_schema
from scopeshift.adapters.llm_base import SamplingConfig
from scopeshift.exceptions import ConfigurationError, OracleError
from scopeshift.gates.schemas import SCOPE_ANALYSIS_SCHEMA, SCOPE_SCHEMA, TEST_PLAN_SCHEMA, load_schema


@pytest.fixture
def adapter(monkeypatch: pytest.MonkeyPatch) -> GeminiAdapter:
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    adapter = GeminiAdapter()
    adapter.client = MagicMock()
    adapter.client.aio.models.generate_content = AsyncMock()
    return adapter


def test_to_gemini_schema_keeps_enums_and_ordering() -> None:
    schema = to_gemini_schema(load_schema(TEST_PLAN_SCHEMA))
    assert schema.type == types.Type.OBJECT
    test = schema.properties["tests"].items
    assert test.properties["tier"].enum == ["V0", "V1"]
    assert test.property_ordering[:3] == ["id", "tier", "name"]
    assert "assertions" in test.required


def test_to_gemini_schema_carries_bounds() -> None:
    scope = to_gemini_schema(load_schema(SCOPE_SCHEMA))
    feature = scope.properties["features"].items
    assert feature.properties["acceptanceCriteria"].min_items == 1

    analysis = to_gemini_schema(load_schema(SCOPE_ANALYSIS_SCHEMA))
    assert analysis.properties["score"].minimum == 0
    assert analysis.properties["score"].maximum == 100
    location = analysis.properties["issues"].items.properties["location"]
    assert location.properties["ac_index"].type == types.Type.INTEGER


def test_missing_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
        GeminiAdapter()


def test_api_key_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "fallback")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-custom")
    assert GeminiAdapter().model == "gemini-custom"


@pytest.mark.asyncio
async def test_complete_sends_schema_and_sampling(adapter: GeminiAdapter) -> None:
    usage = SimpleNamespace(prompt_token_count=10, candidates_token_count=5, total_token_count=15)
    adapter.client.aio.models.generate_content.return_value = SimpleNamespace(
        text='  {"tests": []}\n', usage_metadata=usage
    )
    response = await adapter.complete(
        "system", "prompt", load_schema(TEST_PLAN_SCHEMA), SamplingConfig(0.2, top_p=0.9, top_k=40)
    )

    assert response.raw_text == '{"tests": []}'
    assert response.model == DEFAULT_MODEL
    assert response.usage == {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}

    kwargs = adapter.client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == DEFAULT_MODEL
    assert kwargs["contents"] == "prompt"
    config = kwargs["config"]
    assert config.system_instruction == "system"
    assert config.response_mime_type == "application/json"
    assert config.temperature == 0.2
    assert config.top_p == 0.9
    assert config.top_k == 40


@pytest.mark.asyncio
async def test_transport_failure_becomes_oracle_error(adapter: GeminiAdapter) -> None:
    adapter.client.aio.models.generate_content.side_effect = RuntimeError("503 unavailable")
    with pytest.raises(OracleError, match="Gemini request failed: 503 unavailable"):
        await adapter.complete("s", "p", load_schema(TEST_PLAN_SCHEMA), SamplingConfig(0.1))


@pytest.mark.asyncio
async def test_empty_text_is_an_error(adapter: GeminiAdapter) -> None:
    adapter.client.aio.models.generate_content.return_value = SimpleNamespace(
        text=None, usage_metadata=None
    )
    with pytest.raises(OracleError, match="empty content"):
        await adapter.complete("s", "p", load_schema(TEST_PLAN_SCHEMA), SamplingConfig(0.1))
