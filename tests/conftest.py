"""Shared pytest fixtures for FocusRank tests."""

import os
import sys
import tempfile

# Must be set before focusrank.paths is imported.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ["FOCUSRANK_HOME"] = tempfile.mkdtemp(prefix="focusrank-tests-")

import pytest

from PyQt6.QtWidgets import QApplication

from focusrank.anticheat import FocusTimeGate
from focusrank.database.db import configure_engine, init_db
from focusrank.database.service import PersistenceService
from focusrank.sessions import SessionRecorder
from focusrank.settings import ConfigurationStore
from focusrank.sync.outbox import Outbox
from focusrank.tasks import TaskLinkage
from focusrank.timer.engine import TimerEngine
from focusrank.timer.scheduler import ManualScheduler

from helpers import FakeClock, RecordingEffects


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(clock):
    return PersistenceService(clock=clock)


@pytest.fixture
def gate(clock):
    return FocusTimeGate(clock=clock)


@pytest.fixture
def outbox(qapp, service, gate):
    """Backend outbox that only runs when a test calls ``drain()``."""
    return Outbox.for_backend(service, gate, auto_drain=False)


@pytest.fixture
def config_store(qapp, outbox):
    return ConfigurationStore(outbox=outbox, cache_enabled=False)


@pytest.fixture
def recorder(qapp, outbox):
    return SessionRecorder(outbox)


@pytest.fixture
def tasks(qapp, outbox):
    return TaskLinkage(outbox)


@pytest.fixture
def effects():
    return RecordingEffects()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def engine(qapp, config_store, recorder, tasks, effects, scheduler):
    """Fully wired TimerEngine on a manual clock; nothing auto-starts."""
    return TimerEngine(
        config_store,
        recorder=recorder,
        tasks=tasks,
        effects=effects,
        scheduler=scheduler,
    )


@pytest.fixture
def bare_engine(qapp, scheduler):
    """TimerEngine with no collaborators (pure state-machine tests)."""
    return TimerEngine(
        ConfigurationStore(cache_enabled=False),
        scheduler=scheduler,
    )
