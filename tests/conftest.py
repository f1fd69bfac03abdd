import os
import tempfile
from datetime import datetime, timedelta

import pytest

# Keep log files and any default-path writes out of the real user data dir.
os.environ.setdefault("TIMETRACKER_DATA_DIR", tempfile.mkdtemp(prefix="timetracker-tests-"))

from PySide6.QtCore import QCoreApplication

from BackEnd.services.timer_service import TimerService
from BackEnd.services.writer import PersistenceWriter


class FakeClock:
	"""Deterministic stand-in for clock.now()."""

	def __init__(self, start=None):
		self.current = start or datetime(2024, 5, 2, 9, 0, 0).astimezone()

	def __call__(self):
		return self.current

	def advance(self, seconds):
		self.current = self.current + timedelta(seconds=seconds)
		return self.current

	def set(self, value):
		self.current = value.astimezone()
		return self.current


@pytest.fixture(scope="session")
def qapp():
	app = QCoreApplication.instance()
	if app is None:
		app = QCoreApplication([])
	return app

@pytest.fixture
def fake_clock():
	return FakeClock()

@pytest.fixture
def data_dir(tmp_path):
	path = tmp_path / "TimeTracker"
	path.mkdir()
	return path

@pytest.fixture
def writer():
	w = PersistenceWriter(name="test-writer")
	yield w
	w.close()

@pytest.fixture
def service(qapp, data_dir, writer, fake_clock):
	svc = TimerService(data_dir=data_dir, writer=writer, now=fake_clock)
	svc.load()
	yield svc
	svc.close()
