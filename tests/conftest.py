"""Shared fixtures for the upload tracker tests."""

import asyncio
import random

import pytest

from upload_tracker.core.driver import ProgressDriver
from upload_tracker.core.resolver import FixedOutcomeResolver
from upload_tracker.models.upload import PayloadRef, UploadState


class RecordingSleep:
    """Zero-delay stand-in for asyncio.sleep that remembers every call."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def instant_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_driver(instant_sleep):
    """Builds a driver that runs without wall-clock delays."""

    def _make(
        resolver=None,
        min_duration: float = 1.0,
        max_duration: float = 1.0,
        tick_interval: float = 0.1,
        seed: int = 7,
    ) -> ProgressDriver:
        return ProgressDriver(
            resolver=resolver or FixedOutcomeResolver(UploadState.SUCCEEDED),
            min_duration=min_duration,
            max_duration=max_duration,
            tick_interval=tick_interval,
            rng=random.Random(seed),
            sleep=instant_sleep,
        )

    return _make


@pytest.fixture
def payloads() -> list[PayloadRef]:
    return [
        PayloadRef("lease-agreement.pdf", 245_760),
        PayloadRef("nda.docx", 51_200),
        PayloadRef("supplier-terms.doc", 1_048_576),
    ]
