"""
Outcome resolvers decide whether a completing upload succeeds or fails.

A resolver is consulted exactly once per item, at the instant its progress
driver reaches the end of its simulated duration. This is the only
nondeterministic decision in the engine, so it is an injectable object.
"""

import logging
import random
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable

from upload_tracker.exceptions import ResolverExhaustedError
from upload_tracker.models.upload import (
    DEFAULT_ERROR_MESSAGE,
    Resolution,
    UploadItem,
    UploadState,
)

log = logging.getLogger(__name__)


class OutcomeResolver(ABC):
    """Base class for outcome policies."""

    @abstractmethod
    def resolve(self, item: UploadItem) -> Resolution:
        """Returns the terminal outcome for an item that finished uploading."""


class RandomOutcomeResolver(OutcomeResolver):
    """
    Fails each item independently with a fixed probability.

    Args:
        failure_probability: Chance in [0, 1] that an item fails.
        rng: Source of randomness. Pass a seeded `random.Random` for
            reproducible runs.
        error_message: Message attached to failed items.
    """

    def __init__(
        self,
        failure_probability: float = 0.2,
        rng: random.Random | None = None,
        error_message: str = DEFAULT_ERROR_MESSAGE,
    ):
        if not 0.0 <= failure_probability <= 1.0:
            raise ValueError("Failure probability must be between 0 and 1.")
        self.failure_probability = failure_probability
        self.error_message = error_message
        self._rng = rng or random.Random()

    def resolve(self, item: UploadItem) -> Resolution:
        if self._rng.random() < self.failure_probability:
            log.debug(f"Injecting failure for {item.id}")
            return Resolution(UploadState.FAILED, self.error_message)
        return Resolution(UploadState.SUCCEEDED)


class FixedOutcomeResolver(OutcomeResolver):
    """Always resolves to the same state."""

    def __init__(
        self,
        state: UploadState = UploadState.SUCCEEDED,
        error_message: str = DEFAULT_ERROR_MESSAGE,
    ):
        self._resolution = Resolution(
            state, error_message if state is UploadState.FAILED else None
        )

    def resolve(self, item: UploadItem) -> Resolution:
        return self._resolution


class ScriptedOutcomeResolver(OutcomeResolver):
    """
    Hands out a predetermined sequence of outcomes, one per resolved item, in
    the order items complete.
    """

    def __init__(
        self,
        outcomes: Iterable[UploadState],
        error_message: str = DEFAULT_ERROR_MESSAGE,
    ):
        self._outcomes = deque(outcomes)
        self.error_message = error_message

    @property
    def remaining(self) -> int:
        return len(self._outcomes)

    def resolve(self, item: UploadItem) -> Resolution:
        if not self._outcomes:
            raise ResolverExhaustedError(
                f"No scripted outcome left for item '{item.id}'."
            )
        state = self._outcomes.popleft()
        if state is UploadState.FAILED:
            return Resolution(state, self.error_message)
        return Resolution(state)
