from datetime import timedelta

from BackEnd.core import clock
from BackEnd.core.log import get_logger
from BackEnd.core.models import Session
from BackEnd.core.paths import session_file
from BackEnd.repos.filestore import read_json, write_json

logger = get_logger(__name__)

def bucket_path(day, reset_hour=3, data_dir=None):
	"""Return the bucket file path for an instant (or calendar date) under reset_hour."""
	return session_file(clock.day_key(day, reset_hour), data_dir)

def _load_path(path):
	data = read_json(path)
	if data is None:
		return []
	if not isinstance(data, list):
		logger.warning("Unexpected content in %s, ignoring", path)
		return []
	sessions = []
	for item in data:
		try:
			sessions.append(Session.from_dict(item))
		except (KeyError, TypeError, ValueError) as e:
			logger.warning("Skipping bad session entry in %s: %s", path, e)
	return sessions

def _save_path(path, sessions):
	write_json(path, [s.to_dict() for s in sessions])

def load_sessions(day, reset_hour=3, data_dir=None):
	"""Return the sessions of the bucket holding `day`, or [] if missing/corrupt."""
	return _load_path(bucket_path(day, reset_hour, data_dir))

def save_sessions(sessions, day, reset_hour=3, data_dir=None):
	"""Atomically overwrite the bucket holding `day` with sessions."""
	_save_path(bucket_path(day, reset_hour, data_dir), sessions)

def candidate_keys(start):
	"""Bucket keys a session starting at `start` can live in under any reset hour."""
	day = clock.local(start).date()
	return [day.isoformat(), (day - timedelta(days=1)).isoformat()]

def find_bucket(session, data_dir=None):
	"""Return (path, sessions) of the bucket that already holds session.id, or (None, None)."""
	for key in candidate_keys(session.start):
		path = session_file(key, data_dir)
		if not path.exists():
			continue
		sessions = _load_path(path)
		if any(s.id == session.id for s in sessions):
			return path, sessions
	return None, None

def upsert_session(session, reset_hour=3, data_dir=None):
	"""Insert or replace session, keeping it sorted by start.

	A session already on disk stays in the bucket that holds it, even if the
	reset hour has changed since; new sessions go to the bucket for reset_hour.
	"""
	path, sessions = find_bucket(session, data_dir)
	if path is None:
		path = bucket_path(session.start, reset_hour, data_dir)
		sessions = _load_path(path)
		sessions.append(session)
	else:
		sessions = [session if s.id == session.id else s for s in sessions]
	sessions.sort(key=lambda s: s.start)
	_save_path(path, sessions)

def delete_session(session, reset_hour=3, data_dir=None):
	"""Remove session (matched by id) from whichever bucket holds it."""
	path, sessions = find_bucket(session, data_dir)
	if path is None:
		logger.debug("Session %s not found on disk, nothing to delete", session.id)
		return
	_save_path(path, [s for s in sessions if s.id != session.id])

def total_seconds_worked(day, reset_hour=3, data_dir=None, now=None):
	"""Sum ended durations plus live elapsed of any active session in the bucket."""
	now = now or clock.now()
	total = 0
	for s in load_sessions(day, reset_hour, data_dir):
		if s.end is not None:
			total += s.duration_seconds
		else:
			total += max(0, s.duration(now))
	return total
