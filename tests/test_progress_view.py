"""Tests for the Rich view that renders tracker snapshots."""

import io

import pytest
from rich.console import Console

from upload_tracker.cli.progress_manager import UploadProgressView
from upload_tracker.core.tracker import UploadTracker
from upload_tracker.models.upload import UploadState


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=120, color_system=None)


def output_of(console: Console) -> str:
    return console.file.getvalue()


def test_view_follows_tracker_snapshots(console, payloads):
    tracker = UploadTracker()
    view = UploadProgressView(console)
    view.attach(tracker)

    a, b, c = tracker.enqueue(payloads)
    tracker.advance(a, 42)
    tracker.finalize(b, UploadState.FAILED, "Upload failed. Please try again.")
    tracker.remove(c)

    assert view.snapshot == tracker.snapshot()
    console.print(view.render())
    text = output_of(console)
    assert "lease-agreement.pdf" in text
    assert " 42%" in text
    assert "0.23 MB" in text
    assert "Upload failed. Please try again." in text
    assert "supplier-terms.doc" not in text


def test_detached_view_stops_following(console, payloads):
    tracker = UploadTracker()
    view = UploadProgressView(console)
    view.attach(tracker)
    view.detach()

    tracker.enqueue(payloads)

    assert view.snapshot == ()


def test_empty_view(console):
    view = UploadProgressView(console)
    console.print(view.render())
    assert "No files selected." in output_of(console)


@pytest.mark.asyncio
async def test_quiet_mode_reports_each_outcome_once(console, payloads):
    tracker = UploadTracker()
    async with UploadProgressView(console, quiet=True) as view:
        view.attach(tracker)
        a, b, c = tracker.enqueue(payloads)
        tracker.finalize(a, UploadState.SUCCEEDED)
        tracker.finalize(b, UploadState.FAILED, "Quota exceeded")
        tracker.advance(c, 10)

    text = output_of(console)
    assert text.count("Uploaded: lease-agreement.pdf") == 1
    assert text.count("Failed: nda.docx") == 1
    assert "Quota exceeded" in text
    assert "supplier-terms.doc" not in text
