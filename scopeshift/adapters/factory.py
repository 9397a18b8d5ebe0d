from __future__ import annotations

from scopeshift.adapters.gemini_adapter import GeminiAdapter
from scopeshift.adapters.llm_base import LLMAdapter
from scopeshift.adapters.mock_adapter import SCENARIOS, MockAdapter
from scopeshift.adapters.openai_adapter import OpenAIAdapter
from scopeshift.exceptions import ConfigurationError


def create_adapter(
    provider: str, model: str | None = None, mock_scenario: str = "default"
) -> LLMAdapter:
    """Build the oracle adapter for ``provider``.

    Live adapters read their credentials from the environment and raise
    ``ConfigurationError`` when they are missing.
    """
    if provider == "mock":
        if mock_scenario not in SCENARIOS:
            raise ConfigurationError(
                f"Unknown mock scenario '{mock_scenario}'. Expected one of: {', '.join(SCENARIOS)}."
            )
        return MockAdapter(scenario=mock_scenario)
    if provider == "gemini":
        return GeminiAdapter(model=model)
    if provider == "openai":
        return OpenAIAdapter(model=model)
    raise ConfigurationError(f"Unknown provider: {provider}")
