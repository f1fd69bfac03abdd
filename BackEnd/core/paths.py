import os
from pathlib import Path

APP_NAME = "TimeTracker"
DATA_FORMAT = "json"

def user_data_dir(app_name=APP_NAME):
	"""Return per-user data dir (Windows/macOS/Linux), honouring TIMETRACKER_DATA_DIR."""
	override = os.environ.get("TIMETRACKER_DATA_DIR", "").strip()
	if override:
		path = Path(override).expanduser()
	else:
		if os.name == "nt":
			base = os.environ.get("LOCALAPPDATA", os.path.expanduser("~\\AppData\\Local"))
		elif os.name == "posix":
			base = os.environ.get("XDG_DATA_HOME", os.path.expanduser("~/.local/share"))
		else:
			base = os.path.expanduser("~")
		path = Path(base) / app_name
	path.mkdir(parents=True, exist_ok=True)
	return path

def _root(data_dir=None):
	if data_dir is None:
		return user_data_dir()
	path = Path(data_dir)
	path.mkdir(parents=True, exist_ok=True)
	return path

def settings_path(data_dir=None):
	"""Return Path to settings.json inside the data dir."""
	return _root(data_dir) / f"settings.{DATA_FORMAT}"

def tags_path(data_dir=None):
	"""Return Path to tags.json inside the data dir."""
	return _root(data_dir) / f"tags.{DATA_FORMAT}"

def sessions_dir(data_dir=None):
	"""Return the Sessions/ directory, creating it if needed."""
	path = _root(data_dir) / "Sessions"
	path.mkdir(parents=True, exist_ok=True)
	return path

def session_file(day_key, data_dir=None):
	"""Return Path of the bucket file for a YYYY-MM-DD key."""
	return sessions_dir(data_dir) / f"{day_key}.{DATA_FORMAT}"

def log_dir(data_dir=None):
	path = _root(data_dir) / "logs"
	path.mkdir(parents=True, exist_ok=True)
	return path
