"""Tool-set and tool-result gates applied around every agent run."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, TypeVar

from config import ScoutConfig

T = TypeVar("T")

# Fixed templates returned by the demand provider's bot protection.
CHALLENGE_SIGNATURES = (
    "captcha-delivery.com",
    "Please enable JS",
    "geo.captcha-delivery",
    "datadome",
)


def filter_tools(tools: Mapping[str, T]) -> Dict[str, T]:
    """Drop the remote shell and workbench tools; everything else passes through."""
    excluded = set(ScoutConfig.EXCLUDED_TOOL_NAMES)
    return {name: spec for name, spec in tools.items() if name not in excluded}


def _payload_text(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)


def is_challenge_response(payload: Any) -> bool:
    if payload is None:
        return False
    text = _payload_text(payload)
    return any(signature in text for signature in CHALLENGE_SIGNATURES)
