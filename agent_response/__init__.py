"""
agent_response package marker.
"""

from agent_response.decoder import Decoded, DecodeFailure, decode
from agent_response.merge import merge_snapshot
from agent_response.message import FALLBACK_MESSAGE, extract_message
from agent_response.resolver import Resolution, looks_like_dashboard_data, resolve, resolve_envelope
from agent_response.schema import DashboardSnapshot

__all__ = [
    "Decoded",
    "DecodeFailure",
    "decode",
    "merge_snapshot",
    "FALLBACK_MESSAGE",
    "extract_message",
    "Resolution",
    "looks_like_dashboard_data",
    "resolve",
    "resolve_envelope",
    "DashboardSnapshot",
]
