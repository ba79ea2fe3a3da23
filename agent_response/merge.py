"""Non-destructive merge of resolved snapshots into dashboard state."""

from __future__ import annotations

from typing import Any, Optional

from agent_response.schema import LIST_FIELDS, DashboardSnapshot


def merge_snapshot(
    previous: DashboardSnapshot,
    incoming: Optional[DashboardSnapshot],
) -> DashboardSnapshot:
    """Fold ``incoming`` into ``previous`` without erasing known data.

    Rules:
        - ``metrics`` is replaced wholesale whenever incoming carries it.
        - List fields are replaced only by a non-empty incoming list; an
          empty or absent list keeps the previous one.
        - ``message`` is replaced by a non-empty incoming message.

    Args:
        previous: Current dashboard snapshot.
        incoming: Snapshot resolved from the latest reply, or ``None``.

    Returns:
        The updated snapshot. ``previous`` itself when nothing changes.
    """
    if incoming is None:
        return previous

    updates: dict[str, Any] = {}

    if incoming.metrics is not None:
        updates["metrics"] = incoming.metrics

    for name in LIST_FIELDS:
        value = getattr(incoming, name)
        if value:
            updates[name] = value

    if incoming.message:
        updates["message"] = incoming.message

    if not updates:
        return previous
    return previous.model_copy(update=updates)
