"""Envelope resolution for agent replies.

The agent transport is not bound to a single wire shape: the structured
dashboard payload can arrive under ``response.result``, inside a ``text``
field, in ``raw_response``, or nowhere at all. Resolution walks a fixed,
ordered list of strategies and returns the first candidate that looks like
dashboard data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from agent_response.decoder import decode
from agent_response.schema import RECOGNIZED_KEYS, DashboardSnapshot
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

_MISSING = object()

Strategy = Callable[[Any], Optional[DashboardSnapshot]]


@dataclass(frozen=True)
class Resolution:
    """Resolved snapshot together with the strategy that produced it."""

    snapshot: DashboardSnapshot
    strategy: str


def looks_like_dashboard_data(value: Any) -> bool:
    """Return True for a record carrying at least one recognised key.

    The check is deliberately loose: one recognised key is enough to accept
    the whole record, even when the other fields are absent or malformed.
    """
    return isinstance(value, dict) and any(key in value for key in RECOGNIZED_KEYS)


def _lookup(value: Any, *path: str) -> Any:
    """Follow ``path`` through nested dicts, returning ``_MISSING`` on a miss."""
    current = value
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _decoded(value: Any) -> Any:
    if value is _MISSING:
        return _MISSING
    result = decode(value)
    return result.value if result.ok else _MISSING


def _accept(candidate: Any) -> Optional[DashboardSnapshot]:
    if looks_like_dashboard_data(candidate):
        return DashboardSnapshot.from_payload(candidate)
    return None


def _from_response_result(raw: Any) -> Optional[DashboardSnapshot]:
    return _accept(_decoded(_lookup(raw, "response", "result")))


def _from_response_result_text(raw: Any) -> Optional[DashboardSnapshot]:
    return _accept(_decoded(_lookup(raw, "response", "result", "text")))


def _from_raw_response(raw: Any) -> Optional[DashboardSnapshot]:
    outer = _decoded(_lookup(raw, "raw_response"))
    if outer is _MISSING:
        return None

    inner = _lookup(outer, "response")
    if isinstance(inner, str):
        inner = _decoded(inner)

    return _accept(inner) or _accept(outer)


def _from_response(raw: Any) -> Optional[DashboardSnapshot]:
    return _accept(_decoded(_lookup(raw, "response")))


def _from_response_message(raw: Any) -> Optional[DashboardSnapshot]:
    message = _lookup(raw, "response", "message")
    if not isinstance(message, str) or not message:
        return None

    snapshot = _accept(_decoded(message))
    if snapshot is not None:
        return snapshot
    # Plain prose: keep it as a message-only snapshot.
    return DashboardSnapshot(message=message)


def _from_envelope(raw: Any) -> Optional[DashboardSnapshot]:
    return _accept(raw)


STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("response_result", _from_response_result),
    ("response_result_text", _from_response_result_text),
    ("raw_response", _from_raw_response),
    ("response", _from_response),
    ("response_message", _from_response_message),
    ("envelope", _from_envelope),
)


def resolve_envelope(raw: Any) -> Optional[Resolution]:
    """Run the strategies in order and report the first match.

    Args:
        raw: Untyped envelope returned by the agent transport.

    Returns:
        A ``Resolution`` naming the winning strategy, or ``None`` when no
        strategy produced dashboard data.
    """
    for name, strategy in STRATEGIES:
        snapshot = strategy(raw)
        if snapshot is not None:
            log_event(logger, logging.DEBUG, "envelope_resolved", strategy=name)
            return Resolution(snapshot=snapshot, strategy=name)

    log_event(
        logger,
        logging.INFO,
        "envelope_unresolved",
        envelope_type=type(raw).__name__,
        strategies=len(STRATEGIES),
    )
    return None


def resolve(raw: Any) -> Optional[DashboardSnapshot]:
    """Return the dashboard snapshot carried by ``raw``, if any."""
    resolution = resolve_envelope(raw)
    return resolution.snapshot if resolution is not None else None
