"""
app/services package marker.
"""

from app.services.dashboard_service import DashboardService, build_dashboard_service

__all__ = [
    "DashboardService",
    "build_dashboard_service",
]
