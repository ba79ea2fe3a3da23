"""
tests/test_dashboard_service.py

End-to-end flows through DashboardService with in-memory agent clients.
No network, no Streamlit runtime.
"""

from __future__ import annotations

import json
from collections import deque
from typing import Any

import pytest
import requests

from agent.client import (
    AgentCallResult,
    AgentRequestError,
    BaseAgentClient,
    HttpAgentClient,
    MockAgentClient,
)
from agent.prompts import DASHBOARD_SUMMARY_PROMPT
from app.config import AgentHTTPSettings, AgentSettings, DashboardSettings
from app.failure_codes import TRANSPORT_FAILURE
from app.services.dashboard_service import DashboardService

ITEM_A = {
    "product": "Gloves",
    "sku": "GLV-1",
    "category": "PPE",
    "currentStock": 4,
    "reorderThreshold": 10,
    "status": "Low",
    "lastRestocked": "2026-09-01",
}


class _ScriptedClient(BaseAgentClient):
    """Returns queued results; exceptions in the queue are raised."""

    def __init__(self, *replies: Any) -> None:
        self._replies = deque(replies)
        self.calls: list[tuple[str, str, str]] = []

    def call(self, prompt: str, agent_id: str, *, session_id: str) -> AgentCallResult:
        self.calls.append((prompt, agent_id, session_id))
        reply = self._replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        return reply


def _result_json(payload: dict) -> AgentCallResult:
    return AgentCallResult(success=True, response={"result": json.dumps(payload)})


def _service(client: BaseAgentClient, **settings: Any) -> DashboardService:
    return DashboardService(
        client=client,
        agent_settings=AgentSettings(agent_id="agent-7"),
        dashboard_settings=DashboardSettings(**settings),
        session_id="session-test",
    )


# ---------------------------------------------------------------------------
# Dashboard load
# ---------------------------------------------------------------------------


def test_load_with_mock_client_populates_dashboard() -> None:
    service = _service(MockAgentClient(dashboard_prompt=DASHBOARD_SUMMARY_PROMPT))

    outcome = service.load_dashboard()

    snapshot = service.store.snapshot
    assert outcome.success and outcome.merged
    assert snapshot.metrics["totalSKUs"] == 128
    assert len(snapshot.inventory_items) == 3
    assert len(snapshot.orders) == 2
    assert [m.role for m in service.store.messages] == ["agent"]
    assert service.store.messages[0].content == snapshot.message


def test_load_passes_agent_and_session_ids() -> None:
    client = _ScriptedClient(_result_json({"message": "ok"}))
    service = _service(client)

    service.load_dashboard()

    assert client.calls == [(DASHBOARD_SUMMARY_PROMPT, "agent-7", "session-test")]
    assert not service.store.is_busy("load")


def test_load_transport_failure_keeps_state_and_allows_retry() -> None:
    client = _ScriptedClient(
        _result_json({"inventoryItems": [ITEM_A]}),
        AgentRequestError("Agent request failed after retries."),
        _result_json({"message": "recovered"}),
    )
    service = _service(client)
    service.load_dashboard()

    failed = service.load_dashboard()

    assert not failed.success
    assert failed.failure_code == TRANSPORT_FAILURE
    assert service.store.error == "Agent request failed after retries."
    assert service.store.snapshot.inventory_items == [ITEM_A]

    retried = service.retry()

    assert retried is not None and retried.success
    assert service.store.error is None
    assert service.store.snapshot.message == "recovered"
    assert service.store.snapshot.inventory_items == [ITEM_A]


def test_load_unparseable_reply_sets_advisory() -> None:
    client = _ScriptedClient(AgentCallResult(success=True, response="no structure here"))
    service = _service(client)

    outcome = service.load_dashboard()

    assert outcome.success
    assert service.store.advisory is not None
    assert service.store.messages == ()


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


def test_chat_turn_keeps_inventory_and_updates_metrics() -> None:
    client = _ScriptedClient(
        _result_json({"message": "summary", "inventoryItems": [ITEM_A]}),
        _result_json(
            {
                "message": "low stock on gloves",
                "metrics": {"totalSKUs": 1, "lowStockCount": 1, "pendingOrders": 0, "topSeller": "Gloves"},
            }
        ),
    )
    service = _service(client)
    service.load_dashboard()

    outcome = service.send_chat("  anything low?  ")

    snapshot = service.store.snapshot
    assert outcome is not None and outcome.merged
    assert snapshot.inventory_items == [ITEM_A]
    assert snapshot.metrics["lowStockCount"] == 1
    assert snapshot.message == "low stock on gloves"
    assert [(m.role, m.content) for m in service.store.messages] == [
        ("agent", "summary"),
        ("user", "anything low?"),
        ("agent", "low stock on gloves"),
    ]


def test_chat_with_prose_reply_from_mock_client() -> None:
    service = _service(MockAgentClient(dashboard_prompt=DASHBOARD_SUMMARY_PROMPT))
    service.load_dashboard()

    service.send_chat("Which items are out of stock?")

    assert service.store.messages[-1].role == "agent"
    assert "Nitrile gloves" in service.store.messages[-1].content
    assert len(service.store.snapshot.inventory_items) == 3


def test_chat_unparseable_reply_still_answers() -> None:
    client = _ScriptedClient(
        AgentCallResult(success=True, response={"result": {"text": "Just prose, no data."}})
    )
    service = _service(client)

    outcome = service.send_chat("hello")

    assert outcome is not None and not outcome.merged
    assert service.store.messages[-1].content == "Just prose, no data."


def test_chat_failed_call_posts_error_text() -> None:
    client = _ScriptedClient(AgentCallResult(success=False, error="quota exceeded"))
    service = _service(client)

    service.send_chat("hello")

    assert service.store.messages[-1].content == "quota exceeded"
    assert service.store.error == "quota exceeded"


def test_chat_retry_does_not_repeat_user_message() -> None:
    client = _ScriptedClient(
        AgentRequestError("Network error."),
        _result_json({"message": "answer"}),
    )
    service = _service(client)
    service.send_chat("question")

    service.retry()

    assert [m.role for m in service.store.messages] == ["user", "agent", "agent"]
    assert service.store.messages[-1].content == "answer"
    assert client.calls[0][0] == client.calls[1][0] == "question"


@pytest.mark.parametrize("text", ["", "   ", None])
def test_blank_chat_is_ignored(text: Any) -> None:
    client = _ScriptedClient()
    service = _service(client)

    assert service.send_chat(text) is None
    assert service.store.messages == ()
    assert client.calls == []


def test_chat_is_ignored_while_another_chat_is_in_flight() -> None:
    client = _ScriptedClient()
    service = _service(client)
    service.store.begin_request("chat", "earlier question")

    assert service.send_chat("second question") is None
    assert client.calls == []


def test_retry_without_failure_is_a_no_op() -> None:
    service = _service(_ScriptedClient())

    assert service.retry() is None


def test_each_service_gets_its_own_session_id() -> None:
    first = DashboardService(client=_ScriptedClient(), agent_settings=AgentSettings())
    second = DashboardService(client=_ScriptedClient(), agent_settings=AgentSettings())

    assert first.session_id.startswith("session-")
    assert first.session_id != second.session_id


def test_broken_transfer_becomes_error_banner() -> None:
    class _BrokenSession:
        def request(self, **kwargs: Any) -> Any:
            raise requests.exceptions.ChunkedEncodingError("connection broken")

    client = HttpAgentClient(
        settings=AgentSettings(client="http", base_url="https://agent.test/chat"),
        http_settings=AgentHTTPSettings(max_retries=0),
        session=_BrokenSession(),  # type: ignore[arg-type]
    )
    service = _service(client)

    outcome = service.load_dashboard()

    assert not outcome.success
    assert outcome.failure_code == TRANSPORT_FAILURE
    assert service.store.error is not None
    assert service.store.last_failed_request is not None
    assert service.store.last_failed_request.kind == "load"


def test_agent_reported_failure_with_structured_error_sets_banner() -> None:
    client = _ScriptedClient(AgentCallResult(success=False, error='{"code": 429}'))
    service = _service(client)

    outcome = service.load_dashboard()

    assert outcome.failure_code == TRANSPORT_FAILURE
    assert service.store.error == '{"code": 429}'
    assert service.store.advisory is None
