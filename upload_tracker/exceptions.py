"""
Defines custom exceptions for the application to allow for more specific error handling.

Per-item upload failures are not exceptions: they are recorded on the item as
a terminal FAILED state. Operations on unknown or already-finished items are
silent no-ops, since drivers and the tracker have decoupled lifetimes.
"""


class UploadTrackerError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(UploadTrackerError):
    """Raised for issues related to configuration loading or validation."""


class TrackerClosedError(UploadTrackerError):
    """Raised when items are enqueued on a tracker that has been closed."""


class ResolverExhaustedError(UploadTrackerError):
    """Raised when a scripted outcome resolver has no outcomes left to hand out."""
