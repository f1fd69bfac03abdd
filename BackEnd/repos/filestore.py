import json
import os
import shutil
from pathlib import Path

from BackEnd.core.log import get_logger

logger = get_logger(__name__)

def temp_path(path):
	path = Path(path)
	return path.with_name(path.name + ".tmp")

def backup_path(path):
	path = Path(path)
	return path.with_name(path.name + ".bak")

def atomic_write(path, content):
	"""Replace path with content without ever leaving it half written.

	The new content goes to <path>.tmp first. An existing file is copied to
	<path>.bak (best effort), then removed, and the temp file is renamed into
	place. Only the remove/rename pair is not atomic; <path>.bak covers it.
	"""
	path = Path(path)
	tmp = temp_path(path)
	bak = backup_path(path)
	path.parent.mkdir(parents=True, exist_ok=True)

	with open(tmp, "w", encoding="utf-8") as f:
		f.write(content)
		f.flush()
		os.fsync(f.fileno())

	if path.exists():
		try:
			if bak.exists():
				bak.unlink()
			shutil.copy2(path, bak)
		except OSError as e:
			logger.warning("Could not back up %s: %s", path, e)

	if path.exists():
		os.remove(path)
	os.rename(tmp, path)

def write_json(path, payload):
	atomic_write(path, json.dumps(payload, indent=2, ensure_ascii=False) + "\n")

def _read(path):
	with open(path, "r", encoding="utf-8") as f:
		return json.load(f)

def read_json(path):
	"""Load JSON from path, falling back to <path>.bak. Returns None if neither is usable."""
	path = Path(path)
	bak = backup_path(path)
	if path.exists():
		try:
			return _read(path)
		except (OSError, ValueError) as e:
			logger.warning("Failed to read %s: %s", path, e)
	if bak.exists():
		try:
			data = _read(bak)
			logger.warning("Recovered %s from backup %s", path.name, bak)
			return data
		except (OSError, ValueError) as e:
			logger.warning("Failed to read backup %s: %s", bak, e)
	return None
