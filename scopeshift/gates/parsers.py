from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List

from scopeshift.exceptions import NormalizationWarning

logger = logging.getLogger(__name__)


def _strip_code_fences(text: str) -> str:
    fenced = re.findall(r"```(?:json)?\s*(.*?)```", text, flags=re.DOTALL | re.IGNORECASE)
    if fenced:
        return "\n".join(fenced)
    return text


def _try_parse(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def extract_json(raw_text: str) -> Dict[str, Any]:
    """Parse the oracle's reply into a top-level JSON object.

    The reply is expected to be bare JSON. A single fenced block or leading
    chatter before the opening brace is tolerated; anything else raises
    ``ValueError``.
    """
    parsed = _try_parse(raw_text)
    if parsed is None:
        stripped = _strip_code_fences(raw_text).strip()
        parsed = _try_parse(stripped)
        if parsed is None:
            start = stripped.find("{")
            if start != -1:
                try:
                    parsed, _ = json.JSONDecoder().raw_decode(stripped[start:])
                except json.JSONDecodeError:
                    parsed = None

    if parsed is None:
        snippet = raw_text.strip().replace("\n", " ")
        snippet = (snippet[:200] + "...") if len(snippet) > 200 else snippet
        raise ValueError(f"No JSON object found in response. Snippet: {snippet}")
    if not isinstance(parsed, dict):
        raise ValueError(
            f"Expected a JSON object at the top level, got {type(parsed).__name__}."
        )
    return parsed


def decode_payload(
    raw: Any, warnings: List[NormalizationWarning] | None = None, context: str = "payload"
) -> Dict[str, Any]:
    """Decode a JSON-encoded request payload into a mapping.

    Anything that does not decode to a JSON object becomes ``{}``; the fallback
    is logged and, when ``warnings`` is given, recorded there.
    """
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, dict):
            return decoded
    warning = NormalizationWarning(f"Failed to parse {context} as a JSON object: {raw!r}")
    logger.warning("[normalize] %s", warning)
    if warnings is not None:
        warnings.append(warning)
    return {}


def decode_assertion_value(raw: Any) -> Any:
    """Decode an assertion value that may carry JSON; plain strings pass through."""
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def encode_if_structured(value: Any) -> Any:
    """Re-encode values the oracle sent as JSON structures instead of strings."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def normalize_choice(value: Any, choices: Dict[str, str]) -> Any:
    """Map a loosely spelled enum value onto its canonical form.

    Unknown values are returned unchanged so schema validation reports them.
    """
    if not isinstance(value, str):
        return value
    key = value.strip().lower()
    return choices.get(key, value)


def normalize_str_list(items: Any) -> Any:
    if not isinstance(items, list):
        return items
    normalized: List[str] = []
    for item in items:
        if item is None or item == "":
            continue
        if isinstance(item, str):
            normalized.append(item)
        elif isinstance(item, dict):
            text = item.get("text") or item.get("description")
            normalized.append(text if isinstance(text, str) else json.dumps(item, ensure_ascii=False))
        else:
            normalized.append(str(item))
    return normalized
