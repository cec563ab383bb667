"""
Shared fixtures for the pixel studio tests.
Qt runs on the offscreen platform; saves are driven through fake workers so
autosave tests control exactly when a save finishes.
"""

import os

import pytest

# Must be set before the first QApplication is created
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("QT_LOGGING_RULES", "*.debug=false")

from pixel_studio.core import pixel_studio_autosave  # noqa: E402
from pixel_studio.core.pixel_studio_models import PixelBuffer  # noqa: E402
from pixel_studio.core.pixel_studio_persistence import (  # noqa: E402
    InMemoryPersistenceService,
)
from pixel_studio.core.pixel_studio_settings import SettingsManager  # noqa: E402


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "gui: test creates and drives real widgets")


class FakeSignal:
    """Synchronous stand-in for a pyqtSignal"""

    def __init__(self):
        self.slots = []

    def connect(self, slot):
        self.slots.append(slot)

    def emit(self, *args):
        for slot in list(self.slots):
            slot(*args)


class FakeSaveWorker:
    """Save worker that only finishes when the test says so"""

    def __init__(self, persistence, artwork_id, pixel_data):
        self.persistence = persistence
        self.artwork_id = artwork_id
        self.pixel_data = pixel_data
        self.saved = FakeSignal()
        self.error = FakeSignal()
        self.finished = FakeSignal()
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def succeed(self):
        """Write through the persistence service and report success"""
        artwork = self.persistence.update_artwork(self.artwork_id, pixel_data=self.pixel_data)
        self.saved.emit(artwork)
        self.finished.emit()
        return artwork

    def fail(self, message="disk full"):
        self.error.emit(message)
        self.finished.emit()


class FakeWorkerFactory:
    """Records every worker the coordinator creates"""

    def __init__(self):
        self.workers = []

    def __call__(self, persistence, artwork_id, pixel_data):
        worker = FakeSaveWorker(persistence, artwork_id, pixel_data)
        self.workers.append(worker)
        return worker

    @property
    def last(self):
        return self.workers[-1]


class FakeClock:
    """Monotonic clock in seconds that only moves when advanced"""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


@pytest.fixture
def buffer4():
    """Empty 4x4 buffer"""
    return PixelBuffer(width=4, height=4)


@pytest.fixture
def store():
    """Empty in-memory persistence service"""
    return InMemoryPersistenceService()


@pytest.fixture
def artwork(store):
    """8x8 private artwork owned by alice"""
    return store.create_artwork("alice", "Test Artwork", 8, 8)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def worker_factory():
    return FakeWorkerFactory()


@pytest.fixture
def settings(tmp_path):
    """Settings stored in a temporary directory"""
    return SettingsManager(settings_dir=tmp_path / "settings")


@pytest.fixture(autouse=True)
def forget_unfinished_fake_saves():
    """Fake workers a test never finished must not outlive it"""
    yield
    pixel_studio_autosave._LIVE_WORKERS.clear()
    pixel_studio_autosave._QUEUED_WORKERS.clear()
