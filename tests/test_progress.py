"""Tests for the progress tracker."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from docscreener.pipeline.progress import DocumentBusyError, ProgressTracker


class TestProgressTracker:
    """Test ProgressTracker state transitions."""

    def test_absent_before_begin(self) -> None:
        tracker = ProgressTracker()

        assert tracker.get("a.pdf") is None
        assert tracker.is_running("a.pdf") is False
        assert tracker.snapshot() == {}

    def test_begin_creates_false_flags(self) -> None:
        tracker = ProgressTracker()

        tracker.begin("a.pdf", 3)

        assert tracker.get("a.pdf") == {0: False, 1: False, 2: False}
        assert tracker.is_running("a.pdf") is True

    def test_begin_twice_rejected(self) -> None:
        tracker = ProgressTracker()
        tracker.begin("a.pdf", 1)

        with pytest.raises(DocumentBusyError):
            tracker.begin("a.pdf", 2)
        assert tracker.get("a.pdf") == {0: False}

    def test_mark_complete(self) -> None:
        tracker = ProgressTracker()
        tracker.begin("a.pdf", 2)

        tracker.mark_complete("a.pdf", 0)

        assert tracker.get("a.pdf") == {0: True, 1: False}

    def test_mark_complete_unknown(self) -> None:
        tracker = ProgressTracker()
        tracker.begin("a.pdf", 1)

        with pytest.raises(KeyError):
            tracker.mark_complete("a.pdf", 5)
        with pytest.raises(KeyError):
            tracker.mark_complete("b.pdf", 0)

    def test_clear_removes_entry(self) -> None:
        tracker = ProgressTracker()
        tracker.begin("a.pdf", 2)
        tracker.mark_complete("a.pdf", 0)

        tracker.clear("a.pdf")

        assert tracker.get("a.pdf") is None
        assert "a.pdf" not in tracker.snapshot()

    def test_clear_missing_is_noop(self) -> None:
        tracker = ProgressTracker()
        listener = MagicMock()
        tracker.subscribe(listener)

        tracker.clear("missing.pdf")

        listener.assert_not_called()

    def test_readers_get_copies(self) -> None:
        tracker = ProgressTracker()
        tracker.begin("a.pdf", 1)

        entry = tracker.get("a.pdf")
        entry[0] = True  # type: ignore[index]
        snapshot = tracker.snapshot()
        snapshot["a.pdf"][0] = True

        assert tracker.get("a.pdf") == {0: False}

    def test_entries_are_independent(self) -> None:
        tracker = ProgressTracker()
        tracker.begin("a.pdf", 1)
        tracker.begin("b.pdf", 2)

        tracker.mark_complete("b.pdf", 1)
        tracker.clear("a.pdf")

        assert tracker.snapshot() == {"b.pdf": {0: False, 1: True}}


class TestProgressSubscriptions:
    """Test change notifications."""

    def test_listener_sees_every_change(self) -> None:
        tracker = ProgressTracker()
        events = []
        tracker.subscribe(lambda key, entry: events.append((key, entry)))

        tracker.begin("a.pdf", 2)
        tracker.mark_complete("a.pdf", 0)
        tracker.mark_complete("a.pdf", 1)
        tracker.clear("a.pdf")

        assert events == [
            ("a.pdf", {0: False, 1: False}),
            ("a.pdf", {0: True, 1: False}),
            ("a.pdf", {0: True, 1: True}),
            ("a.pdf", None),
        ]

    def test_unsubscribe(self) -> None:
        tracker = ProgressTracker()
        listener = MagicMock()
        unsubscribe = tracker.subscribe(listener)

        unsubscribe()
        tracker.begin("a.pdf", 1)

        listener.assert_not_called()

    def test_failing_listener_does_not_break_updates(self) -> None:
        tracker = ProgressTracker()
        tracker.subscribe(MagicMock(side_effect=RuntimeError("boom")))
        second = MagicMock()
        tracker.subscribe(second)

        tracker.begin("a.pdf", 1)

        assert tracker.get("a.pdf") == {0: False}
        second.assert_called_once_with("a.pdf", {0: False})


class TestProgressConcurrency:
    """Test concurrent writers on separate documents."""

    def test_parallel_writers(self) -> None:
        tracker = ProgressTracker()
        segments = 50

        def work(key: str) -> None:
            tracker.begin(key, segments)
            for index in range(segments):
                tracker.mark_complete(key, index)

        threads = [threading.Thread(target=work, args=(f"doc{i}",)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        snapshot = tracker.snapshot()
        assert len(snapshot) == 8
        assert all(all(entry.values()) and len(entry) == segments for entry in snapshot.values())
