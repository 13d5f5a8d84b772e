"""
Data Models Layer.

This package contains the data structures used throughout the application:
tracked items and their states, the validated configuration, and session
statistics.
"""

from .config import TrackerConfig
from .stats import UploadStats
from .upload import PayloadRef, Resolution, UploadItem, UploadState

__all__ = [
    "PayloadRef",
    "Resolution",
    "TrackerConfig",
    "UploadItem",
    "UploadState",
    "UploadStats",
]
