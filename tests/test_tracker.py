"""Tests for the UploadTracker state machine, driven by hand (no driver)."""

import pytest

from upload_tracker.core.tracker import UploadTracker, sequential_ids
from upload_tracker.exceptions import TrackerClosedError
from upload_tracker.models.upload import (
    DEFAULT_ERROR_MESSAGE,
    PayloadRef,
    UploadState,
)


@pytest.fixture
def tracker() -> UploadTracker:
    return UploadTracker()


class TestEnqueue:
    def test_items_start_uploading_at_zero(self, tracker, payloads):
        ids = tracker.enqueue(payloads)

        assert ids == ["upload-1", "upload-2", "upload-3"]
        snapshot = tracker.snapshot()
        assert [item.id for item in snapshot] == ids
        assert [item.payload for item in snapshot] == payloads
        assert all(item.state is UploadState.UPLOADING for item in snapshot)
        assert all(item.progress == 0 for item in snapshot)
        assert all(item.error_message is None for item in snapshot)

    def test_empty_batch_is_a_noop(self, tracker, payloads):
        tracker.enqueue(payloads[:1])
        before = tracker.snapshot()
        notified = []
        tracker.subscribe(notified.append)

        assert tracker.enqueue([]) == []
        assert tracker.snapshot() == before
        assert notified == []

    def test_ids_are_not_reused_after_removal(self, tracker, payloads):
        first = tracker.enqueue_one(payloads[0])
        tracker.remove(first)
        second = tracker.enqueue_one(payloads[0])

        assert second != first
        assert [item.id for item in tracker.snapshot()] == [second]

    def test_same_payload_twice_is_two_items(self, tracker, payloads):
        ids = tracker.enqueue([payloads[0], payloads[0]])
        assert len(set(ids)) == 2
        assert len(tracker) == 2

    def test_custom_id_factory(self, payloads):
        tracker = UploadTracker(id_factory=sequential_ids("file"))
        assert tracker.enqueue(payloads[:2]) == ["file-1", "file-2"]

    def test_enqueue_with_driver_needs_running_loop(self, make_driver, payloads):
        tracker = UploadTracker(driver=make_driver())
        with pytest.raises(RuntimeError):
            tracker.enqueue(payloads)
        assert tracker.snapshot() == ()

    @pytest.mark.asyncio
    async def test_enqueue_after_close_raises(self, tracker, payloads):
        await tracker.aclose()
        with pytest.raises(TrackerClosedError):
            tracker.enqueue(payloads)

    @pytest.mark.asyncio
    async def test_empty_batch_after_close_is_a_noop(self, tracker):
        await tracker.aclose()
        assert tracker.enqueue([]) == []

    def test_duplicate_ids_within_batch_are_rejected(self, payloads):
        tracker = UploadTracker(id_factory=lambda: "same")
        with pytest.raises(ValueError, match="duplicate id"):
            tracker.enqueue(payloads[:2])
        assert tracker.snapshot() == ()
        assert tracker.stats.submitted == 0

    def test_ids_already_tracked_are_rejected(self, payloads):
        ids = iter(["contract", "contract"])
        tracker = UploadTracker(id_factory=lambda: next(ids))
        first = tracker.enqueue_one(payloads[0])
        tracker.advance(first, 40)

        with pytest.raises(ValueError):
            tracker.enqueue_one(payloads[1])

        (item,) = tracker.snapshot()
        assert item.payload == payloads[0]
        assert item.progress == 40


class TestAdvance:
    def test_progress_is_clamped(self, tracker, payloads):
        item_id = tracker.enqueue_one(payloads[0])

        tracker.advance(item_id, -20)
        assert tracker.get(item_id).progress == 0

        tracker.advance(item_id, 250)
        assert tracker.get(item_id).progress == 100
        assert tracker.get(item_id).state is UploadState.UPLOADING

    def test_progress_never_decreases(self, tracker, payloads):
        item_id = tracker.enqueue_one(payloads[0])
        tracker.advance(item_id, 60)
        tracker.advance(item_id, 40)
        assert tracker.get(item_id).progress == 60

    def test_unknown_id_is_ignored(self, tracker):
        tracker.advance("upload-404", 50)
        assert tracker.snapshot() == ()


class TestFinalize:
    def test_success_pins_progress_and_drops_message(self, tracker, payloads):
        item_id = tracker.enqueue_one(payloads[0])
        tracker.advance(item_id, 35)

        tracker.finalize(item_id, UploadState.SUCCEEDED, "ignored")

        item = tracker.get(item_id)
        assert item.state is UploadState.SUCCEEDED
        assert item.progress == 100
        assert item.error_message is None

    def test_failure_keeps_message(self, tracker, payloads):
        item_id = tracker.enqueue_one(payloads[0])
        tracker.finalize(item_id, UploadState.FAILED, "Disk quota exceeded")

        item = tracker.get(item_id)
        assert item.state is UploadState.FAILED
        assert item.progress == 100
        assert item.error_message == "Disk quota exceeded"

    def test_failure_without_message_gets_default(self, tracker, payloads):
        item_id = tracker.enqueue_one(payloads[0])
        tracker.finalize(item_id, UploadState.FAILED)
        assert tracker.get(item_id).error_message == DEFAULT_ERROR_MESSAGE

    def test_uploading_is_not_a_valid_outcome(self, tracker, payloads):
        item_id = tracker.enqueue_one(payloads[0])
        with pytest.raises(ValueError):
            tracker.finalize(item_id, UploadState.UPLOADING)

    def test_terminal_items_are_stable(self, tracker, payloads):
        done, failed = tracker.enqueue(payloads[:2])
        tracker.finalize(done, UploadState.SUCCEEDED)
        tracker.finalize(failed, UploadState.FAILED, "boom")
        before = tracker.snapshot()

        for item_id in (done, failed):
            tracker.advance(item_id, 10)
            tracker.finalize(item_id, UploadState.SUCCEEDED)
            tracker.finalize(item_id, UploadState.FAILED, "again")

        assert tracker.snapshot() == before
        assert tracker.stats.succeeded == 1
        assert tracker.stats.failed == 1


class TestRemove:
    def test_remove_in_any_state(self, tracker, payloads):
        uploading, done, failed = tracker.enqueue(payloads)
        tracker.finalize(done, UploadState.SUCCEEDED)
        tracker.finalize(failed, UploadState.FAILED)

        assert tracker.remove(uploading) is True
        assert tracker.remove(done) is True
        assert tracker.remove(failed) is True
        assert tracker.snapshot() == ()

    def test_remove_unknown_id(self, tracker):
        assert tracker.remove("upload-404") is False

    def test_late_reports_after_removal_are_noops(self, tracker, payloads):
        gone, kept = tracker.enqueue(payloads[:2])
        tracker.advance(gone, 40)
        tracker.remove(gone)
        before = tracker.snapshot()
        notified = []
        tracker.subscribe(notified.append)

        tracker.advance(gone, 80)
        tracker.finalize(gone, UploadState.SUCCEEDED)
        tracker.finalize(gone, UploadState.FAILED, "late")
        tracker.remove(gone)

        assert tracker.snapshot() == before
        assert gone not in tracker
        assert notified == []
        assert [item.id for item in tracker.snapshot()] == [kept]

    def test_clear_removes_everything(self, tracker, payloads):
        ids = tracker.enqueue(payloads)
        tracker.finalize(ids[0], UploadState.SUCCEEDED)

        assert tracker.clear() == 3
        assert tracker.snapshot() == ()
        assert tracker.clear() == 0
        assert tracker.stats.removed == 3
        assert tracker.stats.removed_in_flight == 2


class TestIndependence:
    def test_changes_to_one_item_leave_others_alone(self, tracker, payloads):
        a, b, c = tracker.enqueue(payloads)
        tracker.advance(b, 30)
        untouched = {i.id: i for i in tracker.snapshot() if i.id != a}

        tracker.advance(a, 70)
        tracker.finalize(a, UploadState.FAILED, "boom")
        tracker.remove(a)

        assert {i.id: i for i in tracker.snapshot()} == untouched
        assert tracker.get(b).progress == 30
        assert tracker.get(c).progress == 0


class TestSubscribers:
    def test_notified_after_every_change(self, tracker, payloads):
        snapshots = []
        tracker.subscribe(snapshots.append)

        item_id = tracker.enqueue_one(payloads[0])
        tracker.advance(item_id, 50)
        tracker.finalize(item_id, UploadState.SUCCEEDED)
        tracker.remove(item_id)

        assert [len(s) for s in snapshots] == [1, 1, 1, 0]
        assert snapshots[1][0].progress == 50
        assert snapshots[2][0].state is UploadState.SUCCEEDED

    def test_unchanged_progress_does_not_notify(self, tracker, payloads):
        item_id = tracker.enqueue_one(payloads[0])
        tracker.advance(item_id, 50)
        snapshots = []
        tracker.subscribe(snapshots.append)

        tracker.advance(item_id, 50)
        tracker.advance(item_id, 10)

        assert snapshots == []

    def test_unsubscribe(self, tracker, payloads):
        snapshots = []
        unsubscribe = tracker.subscribe(snapshots.append)
        unsubscribe()
        unsubscribe()

        tracker.enqueue(payloads)
        assert snapshots == []

    def test_failing_subscriber_does_not_block_others(self, tracker, payloads):
        def broken(_snapshot):
            raise RuntimeError("render failed")

        snapshots = []
        tracker.subscribe(broken)
        tracker.subscribe(snapshots.append)

        item_id = tracker.enqueue_one(payloads[0])

        assert len(snapshots) == 1
        assert item_id in tracker

    def test_snapshot_is_immutable(self, tracker, payloads):
        tracker.enqueue(payloads)
        snapshot = tracker.snapshot()

        with pytest.raises(AttributeError):
            snapshot[0].progress = 99
        tracker.advance(snapshot[0].id, 99)
        assert snapshot[0].progress == 0


class TestStats:
    def test_counters(self, tracker, payloads):
        a, b, c = tracker.enqueue(payloads)
        tracker.finalize(a, UploadState.SUCCEEDED)
        tracker.finalize(b, UploadState.FAILED)
        tracker.remove(c)

        stats = tracker.stats
        assert stats.submitted == 3
        assert stats.succeeded == 1
        assert stats.failed == 1
        assert stats.removed_in_flight == 1
        assert stats.peak_active == 3
        assert stats.total_size_submitted == sum(p.size for p in payloads)
        assert tracker.active_count == 0


def test_payload_from_missing_path_is_accepted(tmp_path):
    payload = PayloadRef.from_path(tmp_path / "not-there.pdf")
    assert payload.name == "not-there.pdf"
    assert payload.size == 0


def test_payload_from_path_reads_size(tmp_path):
    path = tmp_path / "contract.pdf"
    path.write_bytes(b"%PDF" * 256)
    payload = PayloadRef.from_path(path)
    assert payload.size == 1024
    assert payload.path == path


@pytest.mark.asyncio
async def test_async_context_manager_closes(payloads):
    async with UploadTracker() as tracker:
        tracker.enqueue(payloads)
    assert tracker.closed
