"""Execution layer for storepulse.

Contains the retry controller that wraps every dashboard fetch.
"""

from storepulse.execution.retry import RetryController, RetryPhase, RetryState

__all__ = [
    "RetryController",
    "RetryPhase",
    "RetryState",
]
