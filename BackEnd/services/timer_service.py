import math
import threading
from dataclasses import fields
from datetime import timedelta

from PySide6.QtCore import QObject, Signal

from BackEnd.core import clock
from BackEnd.core.log import get_logger, use_log_dir
from BackEnd.core.models import AppSettings, Session, TimerMode, normalize_tag, truncate_description
from BackEnd.repos import session_repo, settings_repo
from BackEnd.services.tag_registry import TagRegistry, RECENT_LIMIT
from BackEnd.services.writer import PersistenceWriter

logger = get_logger(__name__)

IDLE = "idle"
RUNNING = "running"
PAUSED = "paused"

TARGET_MARK = "✓"

class TimerService(QObject):
	"""Owns the session timer: one active session at most, pause accounting and
	the derived figures (elapsed, today's total, remaining/overtime) shown by the UI.

	All state changes happen in memory first; writes are queued on a
	PersistenceWriter and never block or roll back a transition.
	"""
	tick = Signal(int)  # emits current session elapsed seconds
	state_changed = Signal(str)  # emits 'idle', 'running', 'paused'
	display_changed = Signal(str)  # emits status bar text
	sessions_changed = Signal()
	tags_changed = Signal()
	settings_changed = Signal(object)  # emits AppSettings
	new_tag_requested = Signal()

	def __init__(self, data_dir=None, writer=None, now=clock.now, ticker=None):
		super().__init__()
		self._data_dir = data_dir
		use_log_dir(data_dir)
		self._now = now
		self._lock = threading.RLock()
		self._owns_writer = writer is None
		self._writer = writer if writer is not None else PersistenceWriter()
		self.tag_registry = TagRegistry(self._writer, data_dir, now)

		self.state = IDLE
		self.current_session = None
		self.settings = AppSettings()
		self.today_sessions = []
		self.selected_date = None
		self.day_sessions = []

		self.current_elapsed = 0
		self.today_total = 0
		self.menu_bar_text = clock.fmt_hm(0)

		self._paused_seconds = 0.0
		self._pause_start = None
		self._today_key = None

		self._ticker = ticker
		if ticker is not None:
			ticker.ticked.connect(self.refresh)

	# -- state --

	@property
	def running(self):
		return self.state != IDLE

	@property
	def paused(self):
		return self.state == PAUSED

	@property
	def tags(self):
		return self.tag_registry.tags

	@property
	def reset_hour(self):
		return self.settings.day_reset_hour

	@property
	def target_reached(self):
		return self.today_total >= self.settings.daily_target_seconds

	@property
	def overtime_seconds(self):
		return max(0, self.today_total - self.settings.daily_target_seconds)

	@property
	def remaining_seconds(self):
		return max(0, self.settings.daily_target_seconds - self.today_total)

	@property
	def elapsed_text(self):
		return clock.fmt_hms(self.current_elapsed)

	# -- startup --

	def load(self):
		"""Read settings, tags and today's bucket; adopt a session left running by a crash."""
		with self._lock:
			self.settings = settings_repo.load_settings(self._data_dir)
			self.tag_registry.load()
			now = self._now()
			self._today_key = clock.day_key(now, self.reset_hour)
			self.today_sessions = session_repo.load_sessions(now, self.reset_hour, self._data_dir)
			self.selected_date = now
			self.day_sessions = [s.copy() for s in self.today_sessions]

			active = next((s for s in self.today_sessions if s.end is None), None)
			if active is None:
				# A session started before the reset hour lives in yesterday's bucket.
				previous = session_repo.load_sessions(now - timedelta(days=1), self.reset_hour, self._data_dir)
				active = next((s for s in previous if s.end is None), None)
			if active is not None:
				# Pause time from before the crash is not recorded anywhere.
				logger.info("Recovering active session %s (%s)", active.id, active.tag)
				self.current_session = active.copy()
				self._paused_seconds = 0.0
				self._pause_start = None
				self._set_state(RUNNING)

			self.settings_changed.emit(self.settings.copy())
			self.tags_changed.emit()
			self.sessions_changed.emit()
			self.refresh()
		if self._ticker is not None:
			self._ticker.start()

	def close(self):
		"""Stop ticking and wait for queued writes."""
		if self._ticker is not None:
			self._ticker.stop()
		if self._owns_writer:
			self._writer.close()
		else:
			self._writer.flush()

	# -- transitions --

	def start(self, tag_name):
		with self._lock:
			if self.state != IDLE:
				logger.debug("start() ignored in state %s", self.state)
				return False
			name = normalize_tag(tag_name)
			if not name:
				logger.debug("start() ignored for empty tag")
				return False
			self.tag_registry.upsert(name)
			now = self._now()
			session = Session(tag=name, start=now, created_at=now, updated_at=now)
			self.current_session = session
			self._paused_seconds = 0.0
			self._pause_start = None
			self._set_state(RUNNING)
			self._save_session(session)
			self.tags_changed.emit()
			self.refresh()
			return True

	def pause(self):
		with self._lock:
			if self.state != RUNNING:
				logger.debug("pause() ignored in state %s", self.state)
				return False
			self._pause_start = self._now()
			self._set_state(PAUSED)
			self.refresh()
			return True

	def resume(self):
		with self._lock:
			if self.state != PAUSED or self._pause_start is None:
				logger.debug("resume() ignored in state %s", self.state)
				return False
			self._paused_seconds += (self._now() - self._pause_start).total_seconds()
			self._pause_start = None
			self._set_state(RUNNING)
			self.refresh()
			return True

	def toggle_pause(self):
		with self._lock:
			if self.state == RUNNING:
				return self.pause()
			if self.state == PAUSED:
				return self.resume()
			return False

	def end(self, description="", remarks=""):
		"""Close the current session and return it, or None when idle."""
		with self._lock:
			if self.state == IDLE or self.current_session is None:
				logger.debug("end() ignored in state %s", self.state)
				return None
			now = self._now()
			if self._pause_start is not None:
				self._paused_seconds += (now - self._pause_start).total_seconds()
			session = self.current_session
			session.end = now
			session.duration_seconds = max(
				0, clock.seconds_between(session.start, now) - math.floor(self._paused_seconds))
			session.description = truncate_description(description)
			session.remarks = remarks or ""
			session.updated_at = now

			self.current_session = None
			self._paused_seconds = 0.0
			self._pause_start = None
			self._set_state(IDLE)
			self._save_session(session)
			self.refresh()
			logger.info("Ended session %s (%s) after %ss", session.id, session.tag, session.duration_seconds)
			return session.copy()

	def switch_task(self):
		"""End the current session and ask the UI for the next tag."""
		with self._lock:
			ended = self.end()
		self.new_tag_requested.emit()
		return ended

	# -- session editing --

	def update_session(self, session):
		"""Persist edits (description/remarks) to a stored session."""
		with self._lock:
			session = session.copy()
			session.description = truncate_description(session.description)
			session.remarks = session.remarks or ""
			session.updated_at = self._now()
			if self.current_session is not None and self.current_session.id == session.id:
				self.current_session.description = session.description
				self.current_session.remarks = session.remarks
				self.current_session.updated_at = session.updated_at
				session = self.current_session.copy()
			self._save_session(session)
			return session

	def delete_session(self, session):
		with self._lock:
			if self.current_session is not None and self.current_session.id == session.id:
				self.current_session = None
				self._paused_seconds = 0.0
				self._pause_start = None
				self._set_state(IDLE)
			self.today_sessions = [s for s in self.today_sessions if s.id != session.id]
			self.day_sessions = [s for s in self.day_sessions if s.id != session.id]
			self._writer.submit(session_repo.delete_session, session.copy(), self.reset_hour, self._data_dir)
			self.sessions_changed.emit()
			self.refresh()

	def load_sessions_for_date(self, day):
		"""Load another day's bucket for a history view. Waits for pending writes first.

		`day` may be an instant or a plain calendar date.
		"""
		self._writer.flush()
		sessions = session_repo.load_sessions(day, self.reset_hour, self._data_dir)
		with self._lock:
			self.selected_date = day
			self.day_sessions = sessions
			self.sessions_changed.emit()
		return [s.copy() for s in sessions]

	# -- tags --

	def recent_tags(self, n=RECENT_LIMIT):
		return self.tag_registry.recent(n)

	def filtered_tags(self, query):
		return self.tag_registry.filter(query)

	def rename_tag(self, old_name, new_name):
		if self.tag_registry.rename(old_name, new_name):
			self.tags_changed.emit()
			return True
		return False

	def delete_tag(self, tag):
		if self.tag_registry.delete(tag):
			self.tags_changed.emit()
			return True
		return False

	# -- settings --

	def update_settings(self, **changes):
		"""Apply setting changes, persist them and notify listeners."""
		known = {f.name for f in fields(AppSettings)}
		unknown = set(changes) - known
		if unknown:
			raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
		with self._lock:
			data = self.settings.to_dict()
			for key, value in changes.items():
				data[key] = value.value if isinstance(value, TimerMode) else value
			old_reset = self.settings.day_reset_hour
			self.settings = AppSettings.from_dict(data)
			self._writer.submit(settings_repo.save_settings, self.settings.copy(), self._data_dir)
			if self.settings.day_reset_hour != old_reset:
				self._move_current_session(old_reset)
				self._reload_today()
			self.settings_changed.emit(self.settings.copy())
			self.refresh()
			return self.settings.copy()

	# -- derived values --

	def refresh(self):
		"""Recompute elapsed, today's total and the status text. Called every tick."""
		with self._lock:
			now = self._now()
			self._roll_over(now)
			self.current_elapsed = self._elapsed_at(now)
			total = 0
			for s in self.today_sessions:
				if s.end is not None:
					total += s.duration_seconds
				elif self.current_session is not None and s.id == self.current_session.id:
					total += self.current_elapsed
				else:
					total += max(0, s.duration(now))
			self.today_total = total
			text = self._display_text()
			changed = text != self.menu_bar_text
			self.menu_bar_text = text
			if self.state != IDLE:
				self.tick.emit(self.current_elapsed)
			if changed:
				self.display_changed.emit(text)

	def format_time(self, seconds):
		return clock.fmt_hm(seconds)

	def format_session_time(self, seconds):
		return clock.fmt_hms(seconds)

	# -- internals --

	def _elapsed_at(self, now):
		if self.current_session is None:
			return 0
		reference = self._pause_start if self._pause_start is not None else now
		elapsed = (reference - self.current_session.start).total_seconds() - self._paused_seconds
		return max(0, math.floor(elapsed))

	def _display_text(self):
		if self.settings.timer_mode == TimerMode.STOPWATCH:
			return clock.fmt_hm(self.today_total)
		if self.target_reached:
			if self.overtime_seconds == 0:
				return TARGET_MARK
			return "+" + clock.fmt_hm(self.overtime_seconds)
		return clock.fmt_hm(self.remaining_seconds)

	def _set_state(self, state):
		if state != self.state:
			self.state = state
			self.state_changed.emit(state)

	def _save_session(self, session):
		snapshot = session.copy()
		if self._today_key is None:
			self._today_key = clock.day_key(self._now(), self.reset_hour)
		self._writer.submit(session_repo.upsert_session, snapshot, self.reset_hour, self._data_dir)
		key = clock.day_key(snapshot.start, self.reset_hour)
		if key == self._today_key:
			self.today_sessions = self._merge(self.today_sessions, snapshot)
		if self.selected_date is not None and key == clock.day_key(self.selected_date, self.reset_hour):
			self.day_sessions = self._merge(self.day_sessions, snapshot)
		self.sessions_changed.emit()

	@staticmethod
	def _merge(sessions, session):
		merged = [s for s in sessions if s.id != session.id]
		merged.append(session.copy())
		merged.sort(key=lambda s: s.start)
		return merged

	def _roll_over(self, now):
		key = clock.day_key(now, self.reset_hour)
		if key == self._today_key:
			return
		if self._today_key is not None:
			logger.info("Day rolled over from %s to %s", self._today_key, key)
		self._today_key = key
		self.today_sessions = [
			s for s in self.today_sessions if clock.day_key(s.start, self.reset_hour) == key]
		self.sessions_changed.emit()

	def _reload_today(self):
		self._writer.flush()
		now = self._now()
		self._today_key = clock.day_key(now, self.reset_hour)
		self.today_sessions = session_repo.load_sessions(now, self.reset_hour, self._data_dir)
		self.sessions_changed.emit()

	def _move_current_session(self, old_reset):
		# The active session must live in exactly one bucket under the new reset hour.
		session = self.current_session
		if session is None:
			return
		if clock.day_key(session.start, old_reset) == clock.day_key(session.start, self.reset_hour):
			return
		self._writer.submit(session_repo.delete_session, session.copy(), old_reset, self._data_dir)
		self._writer.submit(session_repo.upsert_session, session.copy(), self.reset_hour, self._data_dir)
