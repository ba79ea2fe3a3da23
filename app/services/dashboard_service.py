"""
app/services/dashboard_service.py

Dashboard controller: dispatches agent calls and applies replies to the store.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from agent.client import AgentCallResult, AgentRequestError, BaseAgentClient, build_agent_client
from agent.prompts import DASHBOARD_SUMMARY_PROMPT
from app.config import (
    AgentSettings,
    DashboardSettings,
    get_agent_http_settings,
    get_agent_settings,
    get_dashboard_settings,
)
from app.failure_codes import TRANSPORT_FAILURE
from dashboard.store import AgentRequest, ApplyOutcome, DashboardStore

logger = logging.getLogger(__name__)

CHAT_FAILURE_MESSAGE = "Sorry, something went wrong."
NETWORK_FAILURE_MESSAGE = "Network error."


def _new_session_id() -> str:
    return f"session-{uuid.uuid4().hex}"


class DashboardService:
    """
    Top-level controller owning one dashboard store per page session.
    """

    def __init__(
        self,
        *,
        client: BaseAgentClient,
        agent_settings: AgentSettings,
        dashboard_settings: Optional[DashboardSettings] = None,
        store: Optional[DashboardStore] = None,
        session_id: Optional[str] = None,
    ) -> None:
        settings = dashboard_settings or DashboardSettings()
        self._client = client
        self._agent_id = agent_settings.agent_id
        self.store = store or DashboardStore(
            discard_stale_responses=settings.discard_stale_responses,
        )
        self.session_id = session_id or _new_session_id()

    def load_dashboard(self) -> ApplyOutcome:
        """
        Request the full dashboard summary and merge it into the store.
        """

        request = self.store.begin_request("load", DASHBOARD_SUMMARY_PROMPT)
        outcome = self._dispatch(request)
        if outcome.success and outcome.snapshot is not None and outcome.snapshot.message:
            self.store.append_chat_message("agent", outcome.snapshot.message)
        return outcome

    def send_chat(self, text: str) -> Optional[ApplyOutcome]:
        """
        Send one chat turn. Blank input and sends while a chat call is in
        flight are ignored and return None.
        """

        prompt = (text or "").strip()
        if not prompt or self.store.is_busy("chat"):
            return None

        self.store.append_chat_message("user", prompt)
        return self._chat(prompt)

    def retry(self) -> Optional[ApplyOutcome]:
        """
        Re-dispatch the last failed request, if any.
        """

        failed = self.store.last_failed_request
        if failed is None:
            return None
        self.store.clear_error()
        if failed.kind == "load":
            return self.load_dashboard()
        return self._chat(failed.prompt)

    def _chat(self, prompt: str) -> ApplyOutcome:
        request = self.store.begin_request("chat", prompt)
        outcome = self._dispatch(request)
        self.store.append_chat_message("agent", outcome.message or CHAT_FAILURE_MESSAGE)
        return outcome

    def _dispatch(self, request: AgentRequest) -> ApplyOutcome:
        logger.info(
            "Dispatching agent call kind=%s generation=%s session=%s",
            request.kind,
            request.generation,
            self.session_id,
        )
        try:
            result = self._call(request)
        except AgentRequestError as exc:
            message = str(exc) or NETWORK_FAILURE_MESSAGE
            self.store.record_transport_failure(message, request)
            return ApplyOutcome(success=False, message=message, failure_code=TRANSPORT_FAILURE)
        finally:
            self.store.finish_request(request)
        return self.store.apply_agent_result(result, request)

    def _call(self, request: AgentRequest) -> AgentCallResult:
        return self._client.call(request.prompt, self._agent_id, session_id=self.session_id)


def build_dashboard_service() -> DashboardService:
    """
    Build a service from environment settings.
    """

    agent_settings = get_agent_settings()
    client = build_agent_client(
        agent_settings,
        get_agent_http_settings(),
        dashboard_prompt=DASHBOARD_SUMMARY_PROMPT,
    )
    return DashboardService(
        client=client,
        agent_settings=agent_settings,
        dashboard_settings=get_dashboard_settings(),
    )
