"""
Error types for the managed instance group image rollout.
"""

from typing import Optional


class RolloutError(Exception):
    """Base class for rollout failures."""


class NotFoundError(RolloutError):
    """No image or instance template matched the requested identifier."""


class ProviderError(RolloutError):
    """A Compute Engine API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SafetyAbort(SystemExit):
    """
    Hard stop raised when a rollout would take down a single-instance
    production group.

    Derives from SystemExit so callers catching Exception cannot recover it.
    """

    def __init__(self, message: str):
        super().__init__(1)
        self.message = message

    def __str__(self) -> str:
        return self.message
