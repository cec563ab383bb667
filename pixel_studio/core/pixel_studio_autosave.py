#!/usr/bin/env python3
"""
Debounced autosave for the open artwork

A poll timer checks how long the buffer has been quiet. Once a dirty buffer
has been left alone for the debounce period, a snapshot is serialized and
handed to a save worker. States:

    IDLE   --mutation-->  DIRTY  --quiet for debounce-->  SAVING
    SAVING --settled-->   IDLE, or DIRTY if edited during the save

Saves that outlive the timeout count as failed, and their late results are
ignored. A worker cannot be interrupted mid-write, so a new save of an
artwork waits until every earlier save of it has finished writing and
writes reach the store in snapshot order. Failures are reported and never
retried automatically.
"""

# Standard library imports
import time
from enum import Enum
from typing import Any, Callable, Optional

# Third-party imports
from PyQt6.QtCore import QCoreApplication, QObject, QTimer, pyqtSignal

from .pixel_studio_constants import (
    AUTOSAVE_DEBOUNCE_MS,
    AUTOSAVE_POLL_INTERVAL_MS,
    AUTOSAVE_SAVE_TIMEOUT_MS,
)
from .pixel_studio_persistence import PersistenceService
from .pixel_studio_utils import debug_log
from .pixel_studio_workers import ArtworkSaveWorker

# Workers stay referenced until their thread ends, even after their
# coordinator is gone, so a detached save can finish in the background
_LIVE_WORKERS: set = set()

# Final saves waiting for earlier writes of the same artwork, mapped to
# the workers they wait for
_QUEUED_WORKERS: dict = {}


def save_pending(artwork_id: str) -> bool:
    """True while an earlier save of the artwork is still writing"""
    return any(getattr(w, "artwork_id", None) == artwork_id for w in _LIVE_WORKERS)


def _track(worker: Any) -> None:
    worker.finished.connect(lambda w=worker: _release(w))
    _LIVE_WORKERS.add(worker)


def _release(worker: Any) -> None:
    """Forget a finished worker and start saves that were waiting on it"""
    _LIVE_WORKERS.discard(worker)
    for queued, earlier in list(_QUEUED_WORKERS.items()):
        earlier.discard(worker)
        if not earlier:
            del _QUEUED_WORKERS[queued]
            debug_log("AUTOSAVE", f"Starting queued save of {queued.artwork_id}", "DEBUG")
            queued.start()


def wait_for_pending_saves(timeout_ms: int = 5000, artwork_id: Optional[str] = None) -> None:
    """Block until background saves, or those of one artwork, finish"""

    def pending() -> list:
        if artwork_id is None:
            return list(_LIVE_WORKERS)
        return [w for w in _LIVE_WORKERS if getattr(w, "artwork_id", None) == artwork_id]

    deadline = time.monotonic() + timeout_ms / 1000.0
    while pending() and time.monotonic() < deadline:
        for worker in pending():
            if hasattr(worker, "wait"):
                worker.wait(50)
        # Delivers finished signals, which start queued saves
        QCoreApplication.processEvents()
    if pending():
        debug_log("AUTOSAVE", "A background save did not finish in time", "WARNING")


class AutosaveState(Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    SAVING = "saving"


class AutosaveCoordinator(QObject):
    """Schedules artwork saves after a quiet period"""

    # Signals
    stateChanged = pyqtSignal(str)  # new state name
    saveStarted = pyqtSignal()
    saveSucceeded = pyqtSignal(object)  # updated Artwork
    saveFailed = pyqtSignal(str)  # error message

    def __init__(
        self,
        persistence: PersistenceService,
        artwork_id: str,
        snapshot: Callable[[], str],
        poll_interval_ms: int = AUTOSAVE_POLL_INTERVAL_MS,
        debounce_ms: int = AUTOSAVE_DEBOUNCE_MS,
        save_timeout_ms: int = AUTOSAVE_SAVE_TIMEOUT_MS,
        clock: Callable[[], float] = time.monotonic,
        worker_factory: Callable[..., Any] = ArtworkSaveWorker,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.persistence = persistence
        self.artwork_id = artwork_id
        self._snapshot = snapshot
        self._clock = clock
        self._worker_factory = worker_factory

        self.debounce = debounce_ms / 1000.0
        self.save_timeout = save_timeout_ms / 1000.0

        self.state = AutosaveState.IDLE
        self.last_mutation: Optional[float] = None
        self.last_error: Optional[str] = None
        self._mutated_during_save = False
        self._save_started_at: Optional[float] = None
        self._generation = 0
        self._worker = None
        self._active = False
        self._save_requested = False

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(poll_interval_ms)
        self._poll_timer.timeout.connect(self.tick)

    # Lifecycle

    def start(self) -> None:
        """Begin polling"""
        self._active = True
        self._poll_timer.start()
        debug_log("AUTOSAVE", f"Autosave started for artwork {self.artwork_id}", "DEBUG")

    def stop(self) -> None:
        """
        Stop polling and detach from any in-flight save
        The save may still complete in the background, with no further effect
        """
        self._poll_timer.stop()
        self._active = False
        if self.state == AutosaveState.SAVING:
            debug_log("AUTOSAVE", "Detaching from in-flight save", "DEBUG")
        self._generation += 1
        self._worker = None
        debug_log("AUTOSAVE", f"Autosave stopped for artwork {self.artwork_id}", "DEBUG")

    def __enter__(self) -> "AutosaveCoordinator":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def save_in_flight(self) -> bool:
        return self.state == AutosaveState.SAVING

    @property
    def has_unsaved_changes(self) -> bool:
        return self.state == AutosaveState.DIRTY or self._mutated_during_save

    # Events

    def mark_dirty(self) -> None:
        """Record a buffer mutation"""
        self.last_mutation = self._clock()
        if self.state == AutosaveState.SAVING:
            self._mutated_during_save = True
        else:
            self._set_state(AutosaveState.DIRTY)

    def tick(self, now: Optional[float] = None) -> None:
        """Periodic check, driven by the poll timer"""
        if now is None:
            now = self._clock()

        if self.state == AutosaveState.SAVING:
            if (
                self._save_started_at is not None
                and now - self._save_started_at >= self.save_timeout
            ):
                self._expire_save()
            return

        if self.state != AutosaveState.DIRTY:
            return
        due = self._save_requested or (
            self.last_mutation is not None and now - self.last_mutation >= self.debounce
        )
        if due and not self._earlier_save_writing():
            self._dispatch_save(now)

    def request_save(self) -> bool:
        """
        Save now regardless of the debounce period
        Ignored, not queued, while a save is in flight. When a timed out or
        detached save of the artwork is still writing, the save is held and
        dispatched by the first tick after that write ends.
        """
        if self.state == AutosaveState.SAVING:
            debug_log("AUTOSAVE", "Manual save ignored, a save is already running", "DEBUG")
            return False
        if self._earlier_save_writing():
            self._save_requested = True
            self._set_state(AutosaveState.DIRTY)
            return True
        self._dispatch_save(self._clock())
        return True

    def flush(self) -> bool:
        """
        Hand unsaved edits to one last save before the coordinator stops
        The save is detached from the start. It waits behind any earlier save
        of the artwork, so it is always the last write to land.
        """
        if not self.has_unsaved_changes:
            return False
        payload = self._snapshot()
        worker = self._worker_factory(self.persistence, self.artwork_id, payload)
        earlier = {
            w for w in _LIVE_WORKERS if getattr(w, "artwork_id", None) == self.artwork_id
        }
        _track(worker)
        self._mutated_during_save = False
        self._save_requested = False
        self._set_state(AutosaveState.IDLE)
        if earlier:
            debug_log(
                "AUTOSAVE",
                f"Final save of {self.artwork_id} queued behind {len(earlier)} running save(s)",
            )
            _QUEUED_WORKERS[worker] = earlier
        else:
            debug_log("AUTOSAVE", f"Final save of {self.artwork_id} started")
            worker.start()
        return True

    def _earlier_save_writing(self) -> bool:
        if save_pending(self.artwork_id):
            debug_log("AUTOSAVE", "Waiting for an earlier save to finish writing", "DEBUG")
            return True
        return False

    # Save lifecycle

    def _dispatch_save(self, now: float) -> None:
        self._generation += 1
        generation = self._generation
        self._mutated_during_save = False
        self._save_requested = False
        self._save_started_at = now
        self._set_state(AutosaveState.SAVING)

        # Snapshot in a single synchronous pass; later edits go to the next save
        payload = self._snapshot()
        debug_log(
            "AUTOSAVE",
            f"Saving artwork {self.artwork_id} ({len(payload)} bytes of pixel data)",
        )
        self.saveStarted.emit()

        worker = self._worker_factory(self.persistence, self.artwork_id, payload)
        worker.saved.connect(lambda artwork, g=generation: self._on_saved(g, artwork))
        worker.error.connect(lambda message, g=generation: self._on_failed(g, message))
        _track(worker)
        self._worker = worker
        worker.start()

    def _on_saved(self, generation: int, artwork: Any) -> None:
        if generation != self._generation:
            debug_log("AUTOSAVE", "Ignoring result of a detached save", "DEBUG")
            return
        self.last_error = None
        self._settle()
        debug_log("AUTOSAVE", f"Artwork {self.artwork_id} saved")
        self.saveSucceeded.emit(artwork)

    def _on_failed(self, generation: int, message: str) -> None:
        if generation != self._generation:
            debug_log("AUTOSAVE", f"Ignoring failure of a detached save: {message}", "DEBUG")
            return
        self._fail(message)

    def _expire_save(self) -> None:
        # Invalidate the running save so a late answer is dropped
        self._generation += 1
        if self._worker is not None and hasattr(self._worker, "cancel"):
            self._worker.cancel()
        self._fail(f"Save timed out after {self.save_timeout:g}s")

    def _fail(self, message: str) -> None:
        self.last_error = message
        debug_log("AUTOSAVE", f"Save of artwork {self.artwork_id} failed: {message}", "ERROR")
        # No automatic retry; unsaved edits wait for the next mutation or a manual save
        self._settle()
        self.saveFailed.emit(message)

    def _settle(self) -> None:
        self._save_started_at = None
        self._worker = None
        next_state = (
            AutosaveState.DIRTY if self._mutated_during_save else AutosaveState.IDLE
        )
        self._mutated_during_save = False
        self._set_state(next_state)

    def _set_state(self, state: AutosaveState) -> None:
        if state != self.state:
            self.state = state
            self.stateChanged.emit(state.value)
