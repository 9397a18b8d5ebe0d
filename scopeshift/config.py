"""Runtime settings.

Defaults cover everything; a YAML file and environment variables can override
the provider, per-stage sampling, the fixed constraints and the canonical test
plan endpoints. Scenario files may also carry YAML front-matter that adjusts
the constraints for a single run.
"""

from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import yaml

from scopeshift.adapters.llm_base import SamplingConfig
from scopeshift.exceptions import ConfigurationError
from scopeshift.models import Constraints
from scopeshift.utils.io import read_text

SCOPE = "scope"
PROPOSALS = "proposals"
ANALYSIS = "analysis"
TEST_PLAN = "test_plan"
STAGES = (SCOPE, PROPOSALS, ANALYSIS, TEST_PLAN)

PROVIDERS = ("gemini", "openai", "mock")

# Analytical stages run colder than the generative ones.
DEFAULT_SAMPLING: Dict[str, SamplingConfig] = {
    SCOPE: SamplingConfig(temperature=0.2, top_p=0.9, top_k=40),
    PROPOSALS: SamplingConfig(temperature=0.4),
    ANALYSIS: SamplingConfig(temperature=0.1),
    TEST_PLAN: SamplingConfig(temperature=0.1),
}

DEFAULT_ENDPOINTS = [
    "POST /events",
    "POST /events/{id}/rsvp",
    "GET  /events/{id}/attendees.txt",
]


@dataclass
class Settings:
    provider: str = "gemini"
    model: str | None = None
    constraints: Constraints = field(default_factory=Constraints)
    sampling: Dict[str, SamplingConfig] = field(default_factory=lambda: dict(DEFAULT_SAMPLING))
    endpoints: List[str] = field(default_factory=lambda: list(DEFAULT_ENDPOINTS))
    local_rules: bool = True

    def sampling_for(self, stage: str) -> SamplingConfig:
        return self.sampling.get(stage, DEFAULT_SAMPLING[stage])


def load_settings(
    config_path: Path | None = None, env: Mapping[str, str] | None = None
) -> Settings:
    env = os.environ if env is None else env
    data: Dict[str, Any] = {}
    if config_path is not None:
        data = _load_yaml(Path(config_path))

    settings = Settings()
    provider = env.get("SCOPESHIFT_PROVIDER") or data.get("provider") or settings.provider
    if provider not in PROVIDERS:
        raise ConfigurationError(
            f"Unknown provider '{provider}'. Expected one of: {', '.join(PROVIDERS)}."
        )

    sampling = dict(settings.sampling)
    raw_sampling = data.get("sampling") or {}
    if not isinstance(raw_sampling, dict):
        raise ConfigurationError("'sampling' must be a mapping of stage name to settings.")
    for stage, values in raw_sampling.items():
        if stage not in STAGES:
            raise ConfigurationError(f"Unknown stage in sampling config: {stage}")
        sampling[stage] = _sampling_from(values, DEFAULT_SAMPLING[stage])

    endpoints = data.get("endpoints") or settings.endpoints
    if not isinstance(endpoints, list) or len(endpoints) != 3:
        raise ConfigurationError("'endpoints' must list exactly three endpoints.")

    return Settings(
        provider=provider,
        model=env.get("SCOPESHIFT_MODEL") or data.get("model"),
        constraints=_constraints_from(data.get("constraints"), settings.constraints),
        sampling=sampling,
        endpoints=[str(item) for item in endpoints],
        local_rules=bool(data.get("local_rules", settings.local_rules)),
    )


def apply_frontmatter(settings: Settings, meta: Dict[str, Any]) -> Settings:
    if not meta.get("constraints"):
        return settings
    return dataclasses.replace(
        settings, constraints=_constraints_from(meta["constraints"], settings.constraints)
    )


def parse_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """Split optional YAML (or JSON) front-matter from a scenario file.

    Malformed front-matter is ignored and the content is returned unchanged.
    """
    if not content.startswith("---"):
        stripped = content.lstrip()
        if stripped.startswith("{"):
            try:
                parsed, end = json.JSONDecoder().raw_decode(stripped)
            except json.JSONDecodeError:
                return {}, content
            if isinstance(parsed, dict):
                return parsed, stripped[end:].lstrip("\n")
        return {}, content
    parts = content.split("---", 2)
    if len(parts) < 3:
        return {}, content
    meta_raw = parts[1].strip()
    body = parts[2].lstrip("\n")
    try:
        meta = yaml.safe_load(meta_raw) or {}
    except yaml.YAMLError:
        return {}, content
    if not isinstance(meta, dict):
        return {}, content
    return meta, body


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        data = yaml.safe_load(read_text(path)) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping.")
    return data


def _sampling_from(values: Any, default: SamplingConfig) -> SamplingConfig:
    if not isinstance(values, dict):
        raise ConfigurationError("Sampling settings must be a mapping.")
    try:
        return SamplingConfig(
            temperature=float(values.get("temperature", default.temperature)),
            top_p=_optional(values, "top_p", default.top_p, float),
            top_k=_optional(values, "top_k", default.top_k, int),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid sampling settings: {values}") from exc


def _optional(values: Dict[str, Any], key: str, default: Any, cast: Any) -> Any:
    if key not in values:
        return default
    if values[key] is None:
        return None
    return cast(values[key])


def _constraints_from(values: Any, default: Constraints) -> Constraints:
    if values is None:
        return default
    if not isinstance(values, dict):
        raise ConfigurationError("'constraints' must be a mapping.")
    merged = {**default.to_dict(), **values}
    if "p99_latency_ms" not in merged:
        merged["p99_latency_ms"] = None
    for key in ("cold_start_ms", "p99_latency_ms"):
        value = merged.get(key)
        if value is None and key == "p99_latency_ms":
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(f"Constraint '{key}' must be a number, got {value!r}.")
    if not isinstance(merged.get("auth_required"), bool):
        raise ConfigurationError(
            f"Constraint 'auth_required' must be true or false, got {merged.get('auth_required')!r}."
        )
    return Constraints.from_dict(merged)
