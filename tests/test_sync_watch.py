"""Tests for background refresh."""

from __future__ import annotations

import pathlib

from spreadsheet_brain.brain import SpreadsheetBrain
from spreadsheet_brain.model import CellSnapshot
from spreadsheet_brain.sync_watch import LiveSync, _Handler


class _Event:
    def __init__(self, src_path) -> None:
        self.src_path = str(src_path)


class TestLiveSync:
    def test_unchanged_source_is_not_reloaded(self, brain, source) -> None:
        sync = LiveSync(brain, interval=0.01)
        assert not sync.poll_once()
        assert source.fetches == 1

    def test_edit_between_load_and_first_poll(self, brain, source) -> None:
        source.sheets["Sheet1"].append(CellSnapshot(1, 5, "", "=A1"))
        source.modified += 1
        sync = LiveSync(brain, interval=0.01)
        assert sync.poll_once()
        assert brain.dependents_of("A1") == {"Sheet1!B1", "Sheet1!C1", "Sheet1!E1"}
        assert not sync.poll_once()

    def test_never_loaded_brain_is_loaded(self, source) -> None:
        sync = LiveSync(SpreadsheetBrain(source, "doc-1"), interval=0.01)
        assert sync.poll_once()
        assert source.fetches == 1

    def test_reloads_only_when_newer(self, brain, source) -> None:
        calls = []
        sync = LiveSync(brain, interval=0.01, on_reload=lambda: calls.append(1))
        assert not sync.poll_once()
        source.modified += 5
        assert sync.poll_once()
        assert source.fetches == 2
        assert calls == [1]
        assert not sync.poll_once()

    def test_manual_reload_moves_baseline(self, brain, source) -> None:
        sync = LiveSync(brain, interval=0.01)
        source.modified += 1
        brain.reload()
        assert not sync.poll_once()
        assert source.fetches == 2

    def test_thread_stops(self, brain, source) -> None:
        sync = LiveSync(brain, interval=0.01)
        sync.start()
        sync.stop()
        sync.join(timeout=2)
        assert not sync.is_alive()


class TestFileHandler:
    def test_reloads_on_matching_path(self, brain, source, tmp_path) -> None:
        target = tmp_path / "book.xlsx"
        handler = _Handler(brain, target)
        handler.on_modified(_Event(target))
        assert source.fetches == 2

    def test_ignores_other_files(self, brain, source, tmp_path) -> None:
        handler = _Handler(brain, tmp_path / "book.xlsx")
        handler.on_modified(_Event(pathlib.Path(tmp_path) / "other.xlsx"))
        assert source.fetches == 1

    def test_notifies_url(self, brain, tmp_path, monkeypatch) -> None:
        posted = []
        monkeypatch.setattr(
            "spreadsheet_brain.sync_watch.requests.post",
            lambda url, timeout: posted.append((url, timeout)),
        )
        target = tmp_path / "book.xlsx"
        _Handler(brain, target, "http://localhost:8000/notify_update").on_modified(_Event(target))
        assert posted == [("http://localhost:8000/notify_update", 5)]

    def test_failed_reload_skips_notify(self, brain, source, tmp_path, monkeypatch) -> None:
        posted = []
        monkeypatch.setattr(
            "spreadsheet_brain.sync_watch.requests.post",
            lambda url, timeout: posted.append(url),
        )
        source.fail = True
        target = tmp_path / "book.xlsx"
        _Handler(brain, target, "http://x/notify").on_modified(_Event(target))
        assert posted == []
