"""Shared failure code constants for dashboard error handling."""

# Raises the error banner with a retry action.
TRANSPORT_FAILURE = "transport_failure"

# Surfaced as an advisory while the dashboard stays usable.
RESOLUTION_MISS = "resolution_miss"
