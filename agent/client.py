"""
agent/client.py

Transport clients for the upstream inventory agent.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from app.config import AgentHTTPSettings, AgentSettings
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
RETRYABLE_EXCEPTIONS = (
    requests.Timeout,
    requests.ConnectionError,
    requests.exceptions.ChunkedEncodingError,
)


class AgentRequestError(RuntimeError):
    """
    Raised when the agent cannot be reached after retries.
    """


class AgentCallResult(BaseModel):
    """Outcome of one agent call.

    ``response`` and ``raw_response`` are opaque envelopes; nothing about
    their shape is assumed here.
    """

    model_config = ConfigDict(extra="allow")

    success: bool
    response: Any = None
    raw_response: Any = None
    error: Optional[str] = None

    def envelope(self) -> dict[str, Any]:
        """Return the fields the envelope resolver inspects."""
        payload: dict[str, Any] = {"success": self.success}
        if self.response is not None:
            payload["response"] = self.response
        if self.raw_response is not None:
            payload["raw_response"] = self.raw_response
        if self.error is not None:
            payload["error"] = self.error
        return payload


class BaseAgentClient(ABC):
    """Abstract base for all agent transports."""

    @abstractmethod
    def call(self, prompt: str, agent_id: str, *, session_id: str) -> AgentCallResult:
        """Send a prompt to the agent and return its reply.

        Args:
            prompt: User or dashboard prompt text.
            agent_id: Identifier of the agent to address.
            session_id: Conversation session identifier.

        Returns:
            The call outcome with the untouched reply envelope.

        Raises:
            AgentRequestError: If the agent could not be reached.
        """


class HttpAgentClient(BaseAgentClient):
    """Agent transport over a JSON HTTP endpoint.

    Retries timeouts, connection errors, broken chunked bodies and transient
    status codes with exponential backoff.
    """

    def __init__(
        self,
        *,
        settings: AgentSettings,
        http_settings: AgentHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        if not settings.base_url:
            raise ValueError("AGENT_BASE_URL is required for the http agent client.")
        self._url = settings.base_url
        self._api_key = settings.api_key
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier

    def call(self, prompt: str, agent_id: str, *, session_id: str) -> AgentCallResult:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["x-api-key"] = self._api_key

        response = self._post(
            json_body={"message": prompt, "agent_id": agent_id, "session_id": session_id},
            headers=headers,
        )
        return self._to_result(response)

    def _post(self, *, json_body: dict[str, Any], headers: dict[str, str]) -> requests.Response:
        """
        Execute the POST with exponential backoff on transient failures.
        """

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.request(
                    method="POST",
                    url=self._url,
                    json=json_body,
                    headers=headers,
                    timeout=self._timeout_seconds,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Agent request failed status=%s url=%s error=%s",
                        status_code,
                        self._url,
                        exc,
                    )
                    raise AgentRequestError(
                        f"Agent request failed with HTTP status {status_code}."
                    ) from exc
            except RETRYABLE_EXCEPTIONS as exc:
                last_error = exc
            except requests.RequestException as exc:
                logger.error("Agent request failed url=%s error=%s", self._url, exc)
                raise AgentRequestError(f"Agent request failed: {type(exc).__name__}.") from exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Agent request retry attempt=%s/%s wait_seconds=%.2f url=%s",
                attempt + 1,
                self._max_retries,
                backoff_seconds,
                self._url,
            )
            time.sleep(backoff_seconds)

        logger.error(
            "Agent request exhausted retries url=%s error=%s",
            self._url,
            last_error,
        )
        raise AgentRequestError("Agent request failed after retries.") from last_error

    @staticmethod
    def _to_result(response: requests.Response) -> AgentCallResult:
        """
        Wrap the reply body as an AgentCallResult without interpreting it.
        """

        try:
            body = response.json()
        except ValueError:
            return AgentCallResult(success=True, response=response.text)

        if isinstance(body, dict) and isinstance(body.get("success"), bool):
            error = body.get("error")
            if error is not None and not isinstance(error, str):
                body = {**body, "error": json.dumps(error, default=str)}
            try:
                return AgentCallResult.model_validate(body)
            except ValidationError as exc:
                log_event(logger, logging.WARNING, "agent_result_invalid", errors=exc.error_count())
                return AgentCallResult(
                    success=body["success"],
                    response=body,
                    error=body.get("error"),
                )
        return AgentCallResult(success=True, response=body)


# ---------------------------------------------------------------------------
# Canned envelopes used for local runs.
# ---------------------------------------------------------------------------
_MOCK_DASHBOARD = {
    "message": (
        "Inventory summary: **3 items** are below their reorder threshold. "
        "Nitrile gloves are out of stock and should be reordered first."
    ),
    "metrics": {
        "totalSKUs": 128,
        "lowStockCount": 3,
        "pendingOrders": 2,
        "topSeller": "Nitrile Gloves (M)",
    },
    "lowStockAlerts": [
        {
            "product": "Nitrile Gloves (M)",
            "currentStock": 0,
            "threshold": 50,
            "status": "Out of Stock",
            "priority": "High",
            "recommendedOrder": 200,
        },
        {
            "product": "Surgical Masks",
            "currentStock": 35,
            "threshold": 100,
            "status": "Low",
            "priority": "Medium",
            "recommendedOrder": 150,
        },
        {
            "product": "Hand Sanitizer 500ml",
            "currentStock": 18,
            "threshold": 25,
            "status": "Low",
            "priority": "Low",
            "recommendedOrder": 40,
        },
    ],
    "inventoryItems": [
        {
            "product": "Nitrile Gloves (M)",
            "sku": "GLV-NIT-M",
            "category": "PPE",
            "currentStock": 0,
            "reorderThreshold": 50,
            "status": "Out of Stock",
            "lastRestocked": "2026-09-02",
        },
        {
            "product": "Surgical Masks",
            "sku": "MSK-SUR-50",
            "category": "PPE",
            "currentStock": 35,
            "reorderThreshold": 100,
            "status": "Low",
            "lastRestocked": "2026-09-20",
        },
        {
            "product": "Gauze Pads 4x4",
            "sku": "GZE-4X4",
            "category": "Wound Care",
            "currentStock": 420,
            "reorderThreshold": 150,
            "status": "In Stock",
            "lastRestocked": "2026-10-01",
        },
    ],
    "salesData": [
        {"product": "Nitrile Gloves (M)", "unitsSold": 640, "revenue": 5120.0, "trend": "up", "category": "PPE"},
        {"product": "Surgical Masks", "unitsSold": 410, "revenue": 2050.0, "trend": "stable", "category": "PPE"},
        {"product": "Gauze Pads 4x4", "unitsSold": 220, "revenue": 880.0, "trend": "down", "category": "Wound Care"},
    ],
    "orders": [
        {
            "orderId": "PO-1042",
            "date": "2026-10-12",
            "itemCount": 2,
            "status": "In Transit",
            "supplier": "MedSupply Co.",
            "items": [
                {"name": "Surgical Masks", "quantity": 150},
                {"name": "Hand Sanitizer 500ml", "quantity": 40},
            ],
        },
        {
            "orderId": "PO-1039",
            "date": "2026-10-03",
            "itemCount": 1,
            "status": "Completed",
            "supplier": "CarePlus Distribution",
            "items": [{"name": "Gauze Pads 4x4", "quantity": 300}],
        },
    ],
}

_MOCK_CHAT_REPLY = (
    "Nitrile gloves are the only item at zero stock. "
    "I recommend ordering 200 units from MedSupply Co."
)


class MockAgentClient(BaseAgentClient):
    """Deterministic client returning canned envelopes.

    The dashboard prompt gets the full summary as fenced JSON under
    ``response.result``; any other prompt gets a prose reply under
    ``response.message``.
    """

    def __init__(self, dashboard_prompt: str | None = None) -> None:
        self._dashboard_prompt = dashboard_prompt
        self.calls: list[tuple[str, str, str]] = []

    def call(self, prompt: str, agent_id: str, *, session_id: str) -> AgentCallResult:
        self.calls.append((prompt, agent_id, session_id))
        if self._dashboard_prompt is None or prompt == self._dashboard_prompt:
            fenced = "```json\n" + json.dumps(_MOCK_DASHBOARD, indent=2) + "\n```"
            return AgentCallResult(success=True, response={"result": fenced})
        return AgentCallResult(success=True, response={"message": _MOCK_CHAT_REPLY})


def build_agent_client(
    settings: AgentSettings,
    http_settings: AgentHTTPSettings,
    dashboard_prompt: str | None = None,
) -> BaseAgentClient:
    """
    Return the configured agent client.
    """

    if settings.client == "http":
        return HttpAgentClient(settings=settings, http_settings=http_settings)
    return MockAgentClient(dashboard_prompt=dashboard_prompt)
