"""Tolerant decoding of agent payload fragments.

Turns a value that may be a JSON string, an already-decoded structure,
or prose wrapping a fenced JSON block into a decoded value or an explicit
failure. Nothing here raises to the caller.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


@dataclass(frozen=True)
class Decoded:
    """Successfully decoded value."""

    value: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class DecodeFailure:
    """Decode miss.

    Attributes:
        stage: Which step failed ("empty", "json_parse" or "fence_parse").
        reason: Human-readable description of the failure.
    """

    stage: str
    reason: str

    @property
    def ok(self) -> bool:
        return False


DecodeResult = Union[Decoded, DecodeFailure]


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON constant {token!r}")


def _strict_loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def decode(value: Any) -> DecodeResult:
    """Decode a payload fragment.

    Steps:
        1. ``None`` or an empty string is a failure.
        2. Non-string values are treated as already decoded.
        3. Strings are parsed as strict JSON.
        4. Otherwise the first fenced code block is parsed as strict JSON.

    Args:
        value: Any fragment taken from an agent envelope.

    Returns:
        ``Decoded`` on success, ``DecodeFailure`` otherwise.
    """
    if value is None or (isinstance(value, str) and not value):
        return DecodeFailure(stage="empty", reason="value is empty")

    if not isinstance(value, str):
        return Decoded(value)

    try:
        return Decoded(_strict_loads(value))
    except (ValueError, RecursionError) as exc:
        whole_error = str(exc)

    match = _FENCE_PATTERN.search(value)
    if match is None:
        return DecodeFailure(stage="json_parse", reason=whole_error)

    try:
        return Decoded(_strict_loads(match.group(1).strip()))
    except (ValueError, RecursionError) as exc:
        return DecodeFailure(stage="fence_parse", reason=str(exc))
