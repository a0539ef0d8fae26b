"""HTTP access to the dashboard API."""

from storepulse.http.client import DashboardClient

__all__ = ["DashboardClient"]
