"""
tests/test_resolver.py

Envelope resolution across the wire shapes the agent is known to return.
"""

from __future__ import annotations

import json

from agent_response import resolver
from agent_response.resolver import looks_like_dashboard_data, resolve, resolve_envelope
from agent_response.schema import DashboardSnapshot


def _metrics(total: int = 5) -> dict:
    return {"totalSKUs": total, "lowStockCount": 1, "pendingOrders": 0, "topSeller": "Gloves"}


# ---------------------------------------------------------------------------
# Shape predicate
# ---------------------------------------------------------------------------


class TestLooksLikeDashboardData:
    def test_any_recognised_key_is_enough(self) -> None:
        assert looks_like_dashboard_data({"message": "hi"})
        assert looks_like_dashboard_data({"metrics": None})
        assert looks_like_dashboard_data({"lowStockAlerts": []})
        assert looks_like_dashboard_data({"inventoryItems": "garbage"})

    def test_other_keys_alone_are_not_enough(self) -> None:
        assert not looks_like_dashboard_data({"salesData": [{"product": "A"}]})
        assert not looks_like_dashboard_data({"orders": []})
        assert not looks_like_dashboard_data({})

    def test_non_records_are_rejected(self) -> None:
        assert not looks_like_dashboard_data(["message"])
        assert not looks_like_dashboard_data("message")
        assert not looks_like_dashboard_data(None)


# ---------------------------------------------------------------------------
# Strategy order
# ---------------------------------------------------------------------------


def test_response_result_json_string() -> None:
    raw = {"response": {"result": json.dumps({"metrics": _metrics(5)})}}

    resolution = resolve_envelope(raw)

    assert resolution is not None
    assert resolution.strategy == "response_result"
    assert resolution.snapshot.metrics["totalSKUs"] == 5


def test_response_result_already_decoded() -> None:
    raw = {"response": {"result": {"message": "ok", "inventoryItems": [{"sku": "A"}]}}}

    resolution = resolve_envelope(raw)

    assert resolution is not None
    assert resolution.strategy == "response_result"
    assert resolution.snapshot.inventory_items == [{"sku": "A"}]


def test_response_result_text_with_fence() -> None:
    fenced = '```json\n{"lowStockAlerts": [{"product": "Gloves"}]}\n```'
    raw = {"response": {"result": {"text": fenced}}}

    resolution = resolve_envelope(raw)

    assert resolution is not None
    assert resolution.strategy == "response_result_text"
    assert resolution.snapshot.low_stock_alerts == [{"product": "Gloves"}]


def test_raw_response_with_string_encoded_inner_response() -> None:
    inner = json.dumps({"metrics": _metrics(9), "message": "from raw"})
    raw = {
        "response": {"result": "I could not format that."},
        "raw_response": json.dumps({"response": inner}),
    }

    resolution = resolve_envelope(raw)

    assert resolution is not None
    assert resolution.strategy == "raw_response"
    assert resolution.snapshot.metrics["totalSKUs"] == 9
    assert resolution.snapshot.message == "from raw"


def test_raw_response_outer_value_is_used_when_inner_does_not_match() -> None:
    raw = {"raw_response": {"message": "outer", "response": "not json"}}

    resolution = resolve_envelope(raw)

    assert resolution is not None
    assert resolution.strategy == "raw_response"
    assert resolution.snapshot.message == "outer"


def test_response_as_json_string() -> None:
    raw = {"response": json.dumps({"inventoryItems": [{"sku": "B-2"}]})}

    resolution = resolve_envelope(raw)

    assert resolution is not None
    assert resolution.strategy == "response"
    assert resolution.snapshot.inventory_items == [{"sku": "B-2"}]


def test_plain_message_becomes_message_only_snapshot() -> None:
    raw = {"response": {"message": "Here are your top sellers"}}

    snapshot = resolve(raw)

    assert snapshot == DashboardSnapshot(message="Here are your top sellers")


def test_message_strategy_synthesizes_from_prose() -> None:
    raw = {"response": {"message": "Here are your top sellers"}}

    snapshot = resolver._from_response_message(raw)

    assert snapshot == DashboardSnapshot(message="Here are your top sellers")


def test_message_strategy_decodes_embedded_json() -> None:
    raw = {"response": {"message": json.dumps({"metrics": _metrics(3)})}}

    snapshot = resolver._from_response_message(raw)

    assert snapshot is not None
    assert snapshot.message is None
    assert snapshot.metrics["totalSKUs"] == 3


def test_message_strategy_ignores_empty_message() -> None:
    assert resolver._from_response_message({"response": {"message": ""}}) is None
    assert resolver._from_response_message({"response": {"message": 42}}) is None


def test_envelope_itself_is_the_last_resort() -> None:
    raw = {"success": True, "metrics": _metrics(2)}

    resolution = resolve_envelope(raw)

    assert resolution is not None
    assert resolution.strategy == "envelope"
    assert resolution.snapshot.metrics["totalSKUs"] == 2


def test_first_matching_strategy_wins_over_later_ones() -> None:
    raw = {
        "response": {"result": json.dumps({"message": "first"})},
        "raw_response": json.dumps({"message": "third"}),
        "message": "sixth",
    }

    resolution = resolve_envelope(raw)

    assert resolution is not None
    assert resolution.strategy == "response_result"
    assert resolution.snapshot.message == "first"


# ---------------------------------------------------------------------------
# Misses and malformed data
# ---------------------------------------------------------------------------


def test_empty_envelope_resolves_to_none() -> None:
    assert resolve({}) is None
    assert resolve_envelope({}) is None


def test_non_record_envelopes_resolve_to_none() -> None:
    assert resolve(None) is None
    assert resolve("plain prose reply") is None
    assert resolve([1, 2, 3]) is None


def test_unrecognised_payload_resolves_to_none() -> None:
    raw = {"response": {"result": json.dumps({"salesData": [{"product": "A"}]})}}

    assert resolve(raw) is None


def test_malformed_fields_are_dropped_individually() -> None:
    raw = {"response": {"result": json.dumps({"message": "ok", "metrics": "n/a", "orders": {}})}}

    snapshot = resolve(raw)

    assert snapshot is not None
    assert snapshot.message == "ok"
    assert snapshot.metrics is None
    assert snapshot.orders is None


def test_records_are_passed_through_unmodified() -> None:
    alerts = [{"product": "Masks"}, "not a record", {"currentStock": "lots"}]
    raw = {"response": {"result": {"lowStockAlerts": alerts}}}

    snapshot = resolve(raw)

    assert snapshot is not None
    assert snapshot.low_stock_alerts == alerts


def test_deeply_nested_result_text_does_not_resolve() -> None:
    assert resolve({"response": {"result": "[" * 200_000}}) is None
