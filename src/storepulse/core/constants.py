"""Global constants for storepulse.

Centralizes the timing defaults shared by the retry controller, the
connectivity probe and the dashboard HTTP client.
"""

# =============================================================================
# Retry Defaults
# =============================================================================

DEFAULT_MAX_ATTEMPTS = 3
"""Retries after the first try (the operation runs at most 4 times)."""

DEFAULT_BASE_DELAY_MS = 1000
"""Delay before the first retry; doubles for every further retry."""

RATE_LIMIT_MIN_DELAY_MS = 5000.0
"""Backoff floor applied when the server answered 429."""

# =============================================================================
# HTTP Client Defaults
# =============================================================================

DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0
"""Per-request timeout for dashboard API calls."""

DEFAULT_CONNECT_TIMEOUT_SECONDS = 5.0
"""Connect timeout for dashboard API calls."""

DEFAULT_PAGE_SIZE = 20
"""Reviews requested per feed page."""

# =============================================================================
# Connectivity Probe Defaults
# =============================================================================

PROBE_INTERVAL_SECONDS = 5.0
"""Seconds between reachability probes."""

PROBE_TIMEOUT_SECONDS = 5.0
"""Timeout for a single reachability probe."""

# =============================================================================
# Text Truncation Limits (characters)
# =============================================================================

TRUNCATE_ERROR_MESSAGE_CHARS = 200
"""Maximum characters kept from a raw failure message."""
