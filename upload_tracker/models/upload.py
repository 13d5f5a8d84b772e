"""
Data structures describing a single tracked upload and its lifecycle state.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

DEFAULT_ERROR_MESSAGE = "Upload failed. Please try again."


class UploadState(Enum):
    """Lifecycle states of a tracked item."""

    UPLOADING = "uploading"  # Initial state
    SUCCEEDED = "succeeded"  # Terminal
    FAILED = "failed"  # Terminal

    @property
    def is_terminal(self) -> bool:
        return self is not UploadState.UPLOADING


@dataclass(frozen=True)
class PayloadRef:
    """
    Opaque reference to submitted content. The tracker never reads the bytes
    behind it; name and size are carried for display only.
    """

    name: str
    size: int = 0
    path: Path | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> "PayloadRef":
        """Builds a reference from a filesystem path. Missing files get size 0."""
        path = Path(path)
        try:
            size = path.stat().st_size if path.is_file() else 0
        except OSError:
            size = 0
        return cls(name=path.name or str(path), size=size, path=path)


@dataclass(frozen=True)
class UploadItem:
    """An immutable, point-in-time view of one tracked upload."""

    id: str
    payload: PayloadRef
    state: UploadState = UploadState.UPLOADING
    progress: float = 0.0
    error_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal


@dataclass(frozen=True)
class Resolution:
    """The outcome an item is finalized with."""

    state: UploadState
    error_message: str | None = None

    def __post_init__(self):
        if not self.state.is_terminal:
            raise ValueError(f"Resolution state must be terminal, got {self.state}.")
