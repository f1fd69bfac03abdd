import queue
import threading

from BackEnd.core.log import get_logger

logger = get_logger(__name__)

class PersistenceWriter:
	"""Single background thread that runs queued writes one at a time.

	Callers hand over snapshots and never wait; failures are logged and the
	next write for the same file simply supersedes the failed one.
	"""

	def __init__(self, name="timetracker-writer"):
		self._queue = queue.Queue()
		self._closed = False
		self._thread = threading.Thread(target=self._run, name=name, daemon=True)
		self._thread.start()

	def submit(self, fn, *args, **kwargs):
		if self._closed:
			logger.warning("Writer closed, dropping %s", getattr(fn, "__name__", fn))
			return
		self._queue.put((fn, args, kwargs))

	def flush(self):
		"""Block until every queued write has run."""
		self._queue.join()

	def close(self):
		if self._closed:
			return
		self._closed = True
		self._queue.put(None)
		self._thread.join()

	def _run(self):
		while True:
			job = self._queue.get()
			try:
				if job is None:
					return
				fn, args, kwargs = job
				try:
					fn(*args, **kwargs)
				except Exception:
					logger.exception("Persistence task %s failed", getattr(fn, "__name__", fn))
			finally:
				self._queue.task_done()
