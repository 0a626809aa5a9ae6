"""Terminal user interface components."""

from .live import DashboardState, LiveDashboard

__all__ = ["DashboardState", "LiveDashboard"]
