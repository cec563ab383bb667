#!/usr/bin/env python3
"""
Tests for the background save worker
"""

from pixel_studio.core.pixel_studio_exceptions import PersistenceError
from pixel_studio.core.pixel_studio_workers import ArtworkSaveWorker, BaseWorker


class TestBaseWorker:
    """Test cancellation plumbing"""

    def test_cancel(self, qapp):
        worker = BaseWorker()
        assert not worker.is_cancelled()
        worker.cancel()
        assert worker.is_cancelled()

    def test_no_signals_after_cancel(self, qapp):
        worker = BaseWorker()
        errors = []
        worker.error.connect(errors.append)
        worker.cancel()
        worker.emit_error("ignored")
        assert errors == []


class TestArtworkSaveWorker:
    """Test the save worker run loop"""

    def test_run_saves_pixel_data(self, qapp, store, artwork):
        worker = ArtworkSaveWorker(store, artwork.id, '{"2,2":"#ff0000"}')
        saved = []
        worker.saved.connect(saved.append)

        worker.run()

        assert len(saved) == 1
        assert saved[0].pixel_data == '{"2,2":"#ff0000"}'
        assert store.get_artwork_by_id(artwork.id, "alice").pixel_data == '{"2,2":"#ff0000"}'

    def test_run_reports_missing_artwork(self, qapp, store):
        worker = ArtworkSaveWorker(store, "missing", "{}")
        errors = []
        worker.error.connect(errors.append)

        worker.run()

        assert len(errors) == 1
        assert "missing" in errors[0]

    def test_run_reports_storage_failure(self, qapp, store, artwork, monkeypatch):
        def broken_update(*args, **kwargs):
            raise PersistenceError("disk full")

        monkeypatch.setattr(store, "update_artwork", broken_update)
        worker = ArtworkSaveWorker(store, artwork.id, "{}")
        errors = []
        worker.error.connect(errors.append)

        worker.run()

        assert errors == ["Could not save artwork: disk full"]

    def test_run_reports_unexpected_error(self, qapp, store, artwork, monkeypatch):
        def exploding_update(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(store, "update_artwork", exploding_update)
        worker = ArtworkSaveWorker(store, artwork.id, "{}")
        errors = []
        worker.error.connect(errors.append)

        worker.run()

        assert errors == ["Unexpected error saving artwork: boom"]

    def test_cancelled_save_stays_silent(self, qapp, store, artwork):
        worker = ArtworkSaveWorker(store, artwork.id, '{"0,0":"#000000"}')
        saved = []
        worker.saved.connect(saved.append)
        worker.cancel()

        worker.run()

        assert saved == []

    def test_cancel_before_run_skips_write(self, qapp, store, artwork, monkeypatch):
        calls = []
        monkeypatch.setattr(store, "update_artwork", lambda *a, **kw: calls.append(a))
        worker = ArtworkSaveWorker(store, artwork.id, '{"0,0":"#000000"}')
        worker.cancel()

        worker.run()

        assert calls == []
        assert store.get_artwork_by_id(artwork.id, "alice").pixel_data == "{}"

    def test_threaded_save(self, qtbot, store, artwork):
        """Test the worker delivers its result from a real thread"""
        worker = ArtworkSaveWorker(store, artwork.id, '{"1,1":"#00ff00"}')
        with qtbot.waitSignal(worker.saved, timeout=5000) as blocker:
            worker.start()
        assert blocker.args[0].pixel_data == '{"1,1":"#00ff00"}'
        assert worker.wait(5000)
