import threading

from BackEnd.core import clock
from BackEnd.core.log import get_logger
from BackEnd.core.models import Tag, normalize_tag
from BackEnd.repos import tag_repo

logger = get_logger(__name__)

RECENT_LIMIT = 10

class TagRegistry:
	"""Deduplicated list of tag names, ordered by recency for the picker."""

	def __init__(self, writer=None, data_dir=None, now=clock.now):
		self._tags = []
		self._lock = threading.RLock()
		self._writer = writer
		self._data_dir = data_dir
		self._now = now

	@property
	def tags(self):
		with self._lock:
			return [t.copy() for t in self._tags]

	def load(self):
		"""Replace the in-memory list with what is on disk."""
		tags = tag_repo.load_tags(self._data_dir)
		with self._lock:
			self._tags = tags

	def find(self, name):
		"""Case-insensitive lookup by name."""
		wanted = name.lower()
		with self._lock:
			for t in self._tags:
				if t.name.lower() == wanted:
					return t.copy()
		return None

	def upsert(self, name):
		"""Bump last_used on a matching tag or append a new one. Returns the tag or None."""
		name = normalize_tag(name)
		if not name:
			logger.debug("Ignoring empty tag name")
			return None
		with self._lock:
			for t in self._tags:
				if t.name.lower() == name.lower():
					t.last_used = self._now()
					tag = t
					break
			else:
				stamp = self._now()
				tag = Tag(name=name, sort_order=len(self._tags), last_used=stamp, created_at=stamp)
				self._tags.append(tag)
			self._persist()
			return tag.copy()

	def rename(self, old_name, new_name):
		"""Rename the tag named exactly old_name.

		Collisions with other existing tags are not checked.
		"""
		new_name = normalize_tag(new_name)
		if not new_name:
			logger.debug("Ignoring rename of %r to an empty name", old_name)
			return False
		with self._lock:
			for t in self._tags:
				if t.name == old_name:
					t.name = new_name
					self._persist()
					return True
		return False

	def delete(self, tag):
		with self._lock:
			before = len(self._tags)
			self._tags = [t for t in self._tags if t.id != tag.id]
			if len(self._tags) == before:
				return False
			self._persist()
			return True

	def recent(self, n=RECENT_LIMIT):
		with self._lock:
			ordered = sorted(self._tags, key=lambda t: t.last_used, reverse=True)
			return [t.copy() for t in ordered[:n]]

	def filter(self, query, n=RECENT_LIMIT):
		"""Search-as-you-type: case-insensitive substring match, recent tags when empty."""
		query = (query or "").strip().lower()
		if not query:
			return self.recent(n)
		with self._lock:
			return [t.copy() for t in self._tags if query in t.name.lower()]

	def _persist(self):
		snapshot = [t.copy() for t in self._tags]
		if self._writer is None:
			try:
				tag_repo.save_tags(snapshot, self._data_dir)
			except OSError:
				logger.exception("Failed to save tags")
		else:
			self._writer.submit(tag_repo.save_tags, snapshot, self._data_dir)
