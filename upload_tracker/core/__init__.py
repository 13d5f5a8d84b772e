"""
Core tracking engine.

The `UploadTracker` owns every item's state. A `ProgressDriver` runs one
asyncio task per item and reports back to the tracker, asking an
`OutcomeResolver` for each item's final outcome.
"""

from .driver import ProgressDriver
from .resolver import (
    FixedOutcomeResolver,
    OutcomeResolver,
    RandomOutcomeResolver,
    ScriptedOutcomeResolver,
)
from .tracker import UploadTracker, sequential_ids

__all__ = [
    "FixedOutcomeResolver",
    "OutcomeResolver",
    "ProgressDriver",
    "RandomOutcomeResolver",
    "ScriptedOutcomeResolver",
    "UploadTracker",
    "sequential_ids",
]
