"""Best-effort chat text from an agent reply."""

from __future__ import annotations

import json
from typing import Any, Optional

from agent_response.resolver import resolve
from agent_response.schema import DashboardSnapshot

FALLBACK_MESSAGE = "Response received. Dashboard updated."

_UNRESOLVED = object()


def _field(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def _as_text(value: Any) -> Optional[str]:
    if not value:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def extract_message(raw: Any, resolved: Any = _UNRESOLVED) -> str:
    """Return a non-empty, human-readable message for the chat transcript.

    Args:
        raw: Untyped envelope returned by the agent transport.
        resolved: Snapshot already resolved from ``raw``, or ``None`` when
            resolution is known to have missed. Resolved here when omitted.

    Returns:
        The first available of: the snapshot message, ``response.message``,
        ``response.result.text``, ``response.result.message``, or
        ``FALLBACK_MESSAGE``.
    """
    snapshot: Optional[DashboardSnapshot] = resolve(raw) if resolved is _UNRESOLVED else resolved
    if snapshot is not None and snapshot.message:
        return snapshot.message

    response = _field(raw, "response")
    result = _field(response, "result")
    for candidate in (
        _field(response, "message"),
        _field(result, "text"),
        _field(result, "message"),
    ):
        text = _as_text(candidate)
        if text:
            return text

    return FALLBACK_MESSAGE
