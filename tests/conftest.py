"""Shared pytest fixtures for StudySession tests."""

import os
import sys
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtCore import QCoreApplication

from studysession.database.db import configure_engine, init_db
from studysession.timer.engine import ResetPolicy, SessionEngine


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def engine(qapp):
    """Fresh SessionEngine, DB disabled, default restart-phase reset."""
    eng = SessionEngine(parent=None)
    yield eng
    eng.stop()


@pytest.fixture
def engine_idle_reset(qapp):
    """SessionEngine whose reset returns to IDLE."""
    eng = SessionEngine(parent=None, reset_policy=ResetPolicy.IDLE)
    yield eng
    eng.stop()


@pytest.fixture
def engine_db(qapp):
    """SessionEngine that records sessions in the database."""
    eng = SessionEngine(parent=None, db_enabled=True)
    yield eng
    eng.stop()
