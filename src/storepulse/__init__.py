"""storepulse - resilient data fetching for the review and quest dashboard."""

__version__ = "0.4.0"
