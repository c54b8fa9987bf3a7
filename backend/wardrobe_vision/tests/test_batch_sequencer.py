"""
Tests for the batch sequencer.

Tests:
- One bad photo never aborts the batch
- Progress and completion notifications
- Background draining
- Pending review list helpers
"""
import threading
import uuid
from unittest.mock import Mock

import pytest

from wardrobe_vision.cv.garment_analyzer import ImageJob
from wardrobe_vision.services.batch_sequencer import BatchProgress, BatchSequencer
from wardrobe_vision.tests.fakes import make_analyzer


def outfit_jobs(png, count=3, bad_index=None):
    jobs = []
    for i in range(count):
        data = b"not an image" if i == bad_index else png
        jobs.append(ImageJob(image=data, filename=f"photo_{i + 1}.png"))
    return jobs


@pytest.mark.integration
class TestBatchResilience:
    """Test per-image failures are skipped."""

    def test_bad_second_image(self, sequencer, outfit_png):
        progress = []
        sequencer.add_progress_listener(lambda processed, total: progress.append((processed, total)))

        sequencer.add_images(outfit_jobs(outfit_png, bad_index=1))

        sources = {item.source_filename for item in sequencer.pending_items}
        assert sources == {"photo_1.png", "photo_3.png"}
        assert len(sequencer.pending_items) == 4
        assert progress == [(1, 3), (2, 3), (3, 3)]

        summary = sequencer.last_batch
        assert summary.processed_count == 3
        assert summary.total_count == 3
        assert summary.item_count == 4
        assert summary.failed_filenames == ("photo_2.png",)

    def test_analyzer_crash_is_contained(self, outfit_png):
        analyzer = Mock()
        analyzer.analyze.side_effect = [RuntimeError("boom"), []]
        sequencer = BatchSequencer(analyzer, background=False)

        sequencer.add_images(outfit_jobs(outfit_png, count=2))

        assert sequencer.last_batch.processed_count == 2
        assert sequencer.last_batch.failed_filenames == ("photo_1.png",)

    def test_timeout_is_skipped(self, outfit_png):
        sequencer = BatchSequencer(make_analyzer(time_limit=-1.0), background=False)

        sequencer.add_images(outfit_jobs(outfit_png, count=2))

        assert sequencer.pending_items == []
        assert len(sequencer.last_batch.failed_filenames) == 2


@pytest.mark.integration
class TestProgress:
    """Test counters and notifications."""

    def test_idle_after_batch(self, sequencer, outfit_png):
        sequencer.add_images(outfit_jobs(outfit_png))

        assert sequencer.progress() == BatchProgress(is_processing=False, processed_count=0, total_count=0)
        assert sequencer.is_processing is False

    def test_completion_listener(self, sequencer, outfit_png):
        summaries = []
        sequencer.add_completion_listener(summaries.append)

        sequencer.add_images(outfit_jobs(outfit_png, count=2))

        assert len(summaries) == 1
        assert summaries[0] is sequencer.last_batch
        assert summaries[0].item_count == 4

    def test_failing_listener_does_not_stop_batch(self, sequencer, outfit_png):
        def broken(processed, total):
            raise ValueError("listener bug")

        sequencer.add_progress_listener(broken)

        sequencer.add_images(outfit_jobs(outfit_png))

        assert sequencer.last_batch.processed_count == 3

    def test_empty_add_is_noop(self, sequencer):
        sequencer.add_images([])

        assert sequencer.last_batch is None

    def test_results_accumulate_across_batches(self, sequencer, outfit_png):
        sequencer.add_images(outfit_jobs(outfit_png, count=1))
        sequencer.add_images(outfit_jobs(outfit_png, count=1))

        assert len(sequencer.pending_items) == 4
        assert sequencer.last_batch.total_count == 1

    def test_fifo_order(self, sequencer, outfit_png):
        sequencer.add_images(outfit_jobs(outfit_png, count=3))

        order = [item.source_filename for item in sequencer.pending_items]
        assert order == ["photo_1.png", "photo_1.png", "photo_2.png", "photo_2.png",
                         "photo_3.png", "photo_3.png"]


@pytest.mark.integration
class TestBackground:
    """Test draining on the worker thread."""

    def test_background_batch(self, outfit_png):
        sequencer = BatchSequencer(make_analyzer(), background=True)
        try:
            sequencer.add_images(outfit_jobs(outfit_png, bad_index=1))

            assert sequencer.wait(timeout=10)
            assert sequencer.last_batch.processed_count == 3
            assert len(sequencer.pending_items) == 4
        finally:
            sequencer.shutdown()

    def test_images_added_mid_batch_join_it(self, outfit_png):
        release = threading.Event()
        analyzer = make_analyzer()
        analyze = analyzer.analyze

        def slow_analyze(job):
            release.wait(timeout=10)
            return analyze(job)

        analyzer.analyze = slow_analyze
        sequencer = BatchSequencer(analyzer, background=True)
        try:
            sequencer.add_images(outfit_jobs(outfit_png, count=1))
            assert sequencer.is_processing

            sequencer.add_images(outfit_jobs(outfit_png, count=2))
            assert sequencer.progress().total_count == 3

            release.set()
            assert sequencer.wait(timeout=10)
            assert sequencer.last_batch.total_count == 3
            assert sequencer.last_batch.processed_count == 3
        finally:
            release.set()
            sequencer.shutdown()


@pytest.mark.unit
class TestPendingReview:
    """Test the pending review list."""

    def test_get_pending_item(self, sequencer, outfit_png):
        sequencer.add_images(outfit_jobs(outfit_png, count=1))
        item = sequencer.pending_items[0]

        assert sequencer.get_pending_item(item.id) is item

    def test_update_pending_color(self, sequencer, outfit_png):
        sequencer.add_images(outfit_jobs(outfit_png, count=1))
        item = sequencer.pending_items[0]

        updated = sequencer.update_pending_color(item.id, "multicolor")

        assert updated.color_label == "multicolor"
        assert sequencer.get_pending_item(item.id).color_label == "multicolor"

    def test_update_rejects_unknown_label(self, sequencer, outfit_png):
        sequencer.add_images(outfit_jobs(outfit_png, count=1))
        item = sequencer.pending_items[0]

        with pytest.raises(ValueError, match="Unknown color label"):
            sequencer.update_pending_color(item.id, "teal")

    def test_update_missing_item(self, sequencer):
        with pytest.raises(KeyError):
            sequencer.update_pending_color(uuid.uuid4(), "red")

    def test_remove_pending_items(self, sequencer, outfit_png):
        sequencer.add_images(outfit_jobs(outfit_png, count=1))
        first, second = sequencer.pending_items

        removed = sequencer.remove_pending_items([first.id])

        assert removed == [first]
        assert sequencer.pending_items == [second]
