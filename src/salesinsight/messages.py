"""Sentence templates for Sales Insight Generator.

All user-facing wording lives in ``messages.yaml`` next to this module so the
rule engine only deals with keys and numbers. Output is English only.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

_MESSAGES_CACHE: Dict[str, Any] = {}


def _messages_path() -> Path:
    """Return the path of the bundled YAML template file."""
    return Path(__file__).resolve().parent / "messages.yaml"


def _load_messages() -> Dict[str, Any]:
    """Load the template dictionary once and keep it in memory."""
    if _MESSAGES_CACHE:
        return _MESSAGES_CACHE

    with _messages_path().open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Message file {_messages_path()} must contain a YAML mapping.")

    _MESSAGES_CACHE.update(data)
    return _MESSAGES_CACHE


def _deep_get(data: Dict[str, Any], key: str) -> Any:
    """Look up a dotted key like 'insights.findings.top_revenue' in a nested dict."""
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def render(key: str, **kwargs: Any) -> str:
    """Return the template for ``key`` formatted with ``kwargs``.

    Unknown keys raise KeyError so a typo in a rule never ships as output.
    """
    template = _deep_get(_load_messages(), key)
    if template is None:
        raise KeyError(f"No message template for key {key!r}")
    if not isinstance(template, str):
        return str(template)
    return template.format(**kwargs) if kwargs else template
