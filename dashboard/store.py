"""
dashboard/store.py

Session-scoped dashboard state: the current snapshot and the chat transcript.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from agent.client import AgentCallResult
from agent_response.merge import merge_snapshot
from agent_response.message import extract_message
from agent_response.resolver import resolve_envelope
from agent_response.schema import DashboardSnapshot
from app.failure_codes import RESOLUTION_MISS, TRANSPORT_FAILURE
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

CHAT_ROLES = frozenset({"user", "agent"})
REQUEST_KINDS = frozenset({"load", "chat"})

RESOLUTION_MISS_ADVISORY = "Could not parse agent response. Try asking a question in the chat."
DEFAULT_FAILURE_MESSAGE = "Agent call failed. Please retry."


@dataclass(frozen=True)
class ChatMessage:
    """
    One immutable chat transcript entry.
    """

    role: str
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class AgentRequest:
    """
    One dispatched agent call.
    """

    kind: str
    prompt: str
    generation: int


@dataclass(frozen=True)
class ApplyOutcome:
    """
    Result of applying one agent reply to the store.
    """

    success: bool
    message: str
    snapshot: Optional[DashboardSnapshot] = None
    strategy: Optional[str] = None
    merged: bool = False
    failure_code: Optional[str] = None


class DashboardStore:
    """
    Owns the dashboard snapshot and chat transcript for one page session.

    The snapshot only changes through ``merge_snapshot`` and the transcript
    only through ``append_chat_message``. Failures never clear prior state.
    """

    def __init__(self, *, discard_stale_responses: bool = False) -> None:
        self._snapshot = DashboardSnapshot()
        self._messages: list[ChatMessage] = []
        self._error: Optional[str] = None
        self._advisory: Optional[str] = None
        self._last_failed_request: Optional[AgentRequest] = None
        self._generation = 0
        self._in_flight: dict[str, AgentRequest] = {}
        self._discard_stale_responses = discard_stale_responses

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def advisory(self) -> Optional[str]:
        return self._advisory

    @property
    def last_failed_request(self) -> Optional[AgentRequest]:
        return self._last_failed_request

    def merge_snapshot(self, incoming: Optional[DashboardSnapshot]) -> DashboardSnapshot:
        self._snapshot = merge_snapshot(self._snapshot, incoming)
        return self._snapshot

    def append_chat_message(
        self,
        role: str,
        content: str,
        timestamp: Optional[datetime] = None,
    ) -> ChatMessage:
        if role not in CHAT_ROLES:
            raise ValueError(f"Unknown chat role '{role}'. Allowed: {sorted(CHAT_ROLES)}.")
        message = (
            ChatMessage(role=role, content=content)
            if timestamp is None
            else ChatMessage(role=role, content=content, timestamp=timestamp)
        )
        self._messages.append(message)
        return message

    # -- request bookkeeping -------------------------------------------------

    def begin_request(self, kind: str, prompt: str) -> AgentRequest:
        if kind not in REQUEST_KINDS:
            raise ValueError(f"Unknown request kind '{kind}'. Allowed: {sorted(REQUEST_KINDS)}.")
        self._generation += 1
        request = AgentRequest(kind=kind, prompt=prompt, generation=self._generation)
        self._in_flight[kind] = request
        return request

    def finish_request(self, request: AgentRequest) -> None:
        if self._in_flight.get(request.kind) == request:
            del self._in_flight[request.kind]

    def is_busy(self, kind: str) -> bool:
        return kind in self._in_flight

    def is_current(self, request: AgentRequest) -> bool:
        return request.generation == self._generation

    # -- agent replies -------------------------------------------------------

    def apply_agent_result(
        self,
        result: AgentCallResult,
        request: Optional[AgentRequest] = None,
    ) -> ApplyOutcome:
        """
        Resolve one agent reply and fold it into the snapshot.

        A reply that fails resolution sets the advisory; a failed call
        records the error. Neither touches the existing snapshot.
        """

        if not result.success:
            message = result.error or DEFAULT_FAILURE_MESSAGE
            self.record_transport_failure(message, request)
            return ApplyOutcome(success=False, message=message, failure_code=TRANSPORT_FAILURE)

        envelope = result.envelope()
        resolution = resolve_envelope(envelope)
        snapshot = resolution.snapshot if resolution is not None else None
        message = extract_message(envelope, resolved=snapshot)

        failed = self._last_failed_request
        if request is None or failed is None or failed.kind == request.kind:
            self._error = None
            self._last_failed_request = None

        if resolution is None:
            self._advisory = RESOLUTION_MISS_ADVISORY
            return ApplyOutcome(success=True, message=message, failure_code=RESOLUTION_MISS)

        self._advisory = None
        if self._discard_stale_responses and request is not None and not self.is_current(request):
            log_event(
                logger,
                logging.INFO,
                "stale_response_discarded",
                kind=request.kind,
                generation=request.generation,
                latest=self._generation,
            )
            return ApplyOutcome(
                success=True,
                message=message,
                snapshot=snapshot,
                strategy=resolution.strategy,
            )

        self.merge_snapshot(snapshot)
        return ApplyOutcome(
            success=True,
            message=message,
            snapshot=snapshot,
            strategy=resolution.strategy,
            merged=True,
        )

    def record_transport_failure(self, message: str, request: Optional[AgentRequest] = None) -> None:
        log_event(
            logger,
            logging.WARNING,
            "agent_call_failed",
            kind=request.kind if request else None,
            error=message,
        )
        self._error = message
        self._last_failed_request = request

    def clear_error(self) -> None:
        self._error = None
