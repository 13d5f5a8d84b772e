"""
Structured event logging for upload sessions.
Writes human-readable console logs and, optionally, one JSON object per line.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any


class StructuredLogger:
    """
    Logger that emits named events with key/value context.

    Usage:
        logger = StructuredLogger("upload_tracker", log_dir=Path("logs"))
        logger.info("upload_failed", upload_id="upload-3", name="a.pdf")
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name, also used as the JSONL file prefix
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
            enable_console: Forward events to the standard logger
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console
        self.json_log_path: Path | None = None

        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.json_log_path = log_dir / f"{name}_{timestamp}.jsonl"
            self._json_file = open(self.json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        # Added to every JSON entry
        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
        }

    def set_session_context(self, **kwargs) -> None:
        """Set session-level context that appears in all logs."""
        self._session_context.update(kwargs)

    def _format_message(self, event: str, **context) -> str:
        parts = [f"[{event}]"]
        parts.extend(f"{key}={value}" for key, value in context.items())
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except OSError as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _log(self, level: int, event: str, **context) -> None:
        if self.enable_console:
            # Square brackets would be read as rich markup by RichHandler
            self._logger.log(
                level, self._format_message(event, **context), extra={"markup": False}
            )
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        self._log(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self._log(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self._log(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self._log(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class UploadLogger:
    """Lifecycle events of individual tracked items."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def upload_enqueued(self, upload_id: str, name: str, size_bytes: int):
        self.logger.debug(
            "upload_enqueued", upload_id=upload_id, name=name, size_bytes=size_bytes
        )

    def upload_succeeded(self, upload_id: str, name: str):
        self.logger.info("upload_succeeded", upload_id=upload_id, name=name)

    def upload_failed(self, upload_id: str, name: str, error: str):
        self.logger.warning(
            "upload_failed", upload_id=upload_id, name=name, error=error
        )

    def upload_removed(self, upload_id: str, name: str, state: str):
        """Log an item leaving the tracker, with the state it was in."""
        self.logger.debug(
            "upload_removed", upload_id=upload_id, name=name, state=state
        )


class SessionLogger:
    """Start and end of a tracking session."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def session_started(
        self,
        total_items: int,
        failure_probability: float,
        min_duration: float,
        max_duration: float,
    ):
        self.logger.info(
            "session_started",
            total_items=total_items,
            failure_probability=failure_probability,
            min_duration=min_duration,
            max_duration=max_duration,
        )

    def session_completed(self, stats: dict[str, Any]):
        """Log the final session counters."""
        self.logger.info("session_completed", **stats)


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, UploadLogger, SessionLogger]:
    """
    Create all structured loggers.

    Returns:
        Tuple of (base_logger, upload_logger, session_logger)
    """
    base = StructuredLogger("upload_tracker", log_dir=log_dir, enable_json=enable_json)
    return base, UploadLogger(base), SessionLogger(base)
