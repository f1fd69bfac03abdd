import logging
import os

from BackEnd.core.paths import log_dir

PACKAGE_LOGGER = "BackEnd"
LOG_FILE = "timetracker.log"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"

def _formatter():
	return logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

def _package_logger():
	"""Configure the package logger once: level from TIMETRACKER_LOG_LEVEL plus a console handler."""
	logger = logging.getLogger(PACKAGE_LOGGER)
	if logger.handlers:
		return logger

	level = logging.getLevelName(os.environ.get("TIMETRACKER_LOG_LEVEL", "INFO").strip().upper())
	if not isinstance(level, int):
		level = logging.INFO
	logger.setLevel(level)

	ch = logging.StreamHandler()
	ch.setFormatter(_formatter())
	logger.addHandler(ch)
	return logger

def get_logger(name=PACKAGE_LOGGER):
	"""Return a module logger. Handlers live on the package logger; children propagate to it."""
	_package_logger()
	return logging.getLogger(name)

def use_log_dir(data_dir=None):
	"""Point the package file log at <data_dir>/logs/timetracker.log.

	Replaces any file handler aimed elsewhere, so there is at most one.
	"""
	logger = _package_logger()
	try:
		path = os.path.abspath(log_dir(data_dir) / LOG_FILE)
	except OSError as e:
		logger.warning("Cannot create log directory: %s", e)
		return None
	for handler in list(logger.handlers):
		if isinstance(handler, logging.FileHandler):
			if handler.baseFilename == path:
				return handler
			logger.removeHandler(handler)
			handler.close()
	try:
		fh = logging.FileHandler(path, encoding="utf-8")
	except OSError as e:
		logger.warning("Cannot open log file %s: %s", path, e)
		return None
	fh.setFormatter(_formatter())
	logger.addHandler(fh)
	return fh
