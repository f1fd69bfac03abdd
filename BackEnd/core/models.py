import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional
from datetime import datetime

from BackEnd.core import clock

TAG_MAX_LEN = 30
DESCRIPTION_MAX_LEN = 140

def new_id():
	return str(uuid.uuid4()).upper()

def normalize_tag(name):
	"""Trim and cap a tag name at 30 chars. Returns '' when nothing is left."""
	if name is None:
		return ""
	return name.strip()[:TAG_MAX_LEN].rstrip()

def truncate_description(text):
	return (text or "")[:DESCRIPTION_MAX_LEN]


class TimerMode(str, Enum):
	TARGET_TIME = "target_time"
	STOPWATCH = "stopwatch"

	@property
	def display_name(self):
		return "Target Time" if self is TimerMode.TARGET_TIME else "Stopwatch"


@dataclass
class Session:
	tag: str
	id: str = field(default_factory=new_id)
	start: datetime = field(default_factory=clock.now)
	end: Optional[datetime] = None
	duration_seconds: int = 0
	description: str = ""
	remarks: str = ""
	created_at: datetime = field(default_factory=clock.now)
	updated_at: datetime = field(default_factory=clock.now)

	@property
	def is_active(self):
		return self.end is None

	def duration(self, at=None):
		"""Wall-clock seconds from start to end, or to `at`/now while active."""
		stop = self.end if self.end is not None else (at or clock.now())
		return clock.seconds_between(self.start, stop)

	@property
	def formatted_duration(self):
		return clock.fmt_short(self.duration())

	@property
	def time_range(self):
		start = clock.fmt_time_of_day(self.start)
		if self.end is None:
			return f"{start} - now"
		return f"{start} - {clock.fmt_time_of_day(self.end)}"

	def copy(self):
		return replace(self)

	def to_dict(self):
		return {
			"id": self.id,
			"start": clock.to_iso(self.start),
			"end": clock.to_iso(self.end) if self.end is not None else None,
			"duration_seconds": int(self.duration_seconds),
			"tag": self.tag,
			"description": self.description,
			"remarks": self.remarks,
			"created_at": clock.to_iso(self.created_at),
			"updated_at": clock.to_iso(self.updated_at),
		}

	@classmethod
	def from_dict(cls, data):
		start = clock.from_iso(data["start"])
		end = data.get("end")
		return cls(
			id=str(data["id"]),
			start=start,
			end=clock.from_iso(end) if end else None,
			duration_seconds=int(data.get("duration_seconds") or 0),
			tag=str(data["tag"]),
			description=data.get("description") or "",
			remarks=data.get("remarks") or "",
			created_at=clock.from_iso(data["created_at"]) if data.get("created_at") else start,
			updated_at=clock.from_iso(data["updated_at"]) if data.get("updated_at") else start,
		)


@dataclass
class Tag:
	name: str
	id: str = field(default_factory=new_id)
	sort_order: int = 0
	last_used: datetime = field(default_factory=clock.now)
	created_at: datetime = field(default_factory=clock.now)

	def copy(self):
		return replace(self)

	def to_dict(self):
		return {
			"id": self.id,
			"name": self.name,
			"sort_order": int(self.sort_order),
			"last_used": clock.to_iso(self.last_used),
			"created_at": clock.to_iso(self.created_at),
		}

	@classmethod
	def from_dict(cls, data):
		created = clock.from_iso(data["created_at"]) if data.get("created_at") else clock.now()
		return cls(
			id=str(data["id"]),
			name=str(data["name"]),
			sort_order=int(data.get("sort_order") or 0),
			last_used=clock.from_iso(data["last_used"]) if data.get("last_used") else created,
			created_at=created,
		)


def _clamp(value, low, high, default):
	try:
		value = int(value)
	except (TypeError, ValueError):
		return default
	if high is None:
		return max(low, value)
	return max(low, min(high, value))


@dataclass
class AppSettings:
	timer_mode: TimerMode = TimerMode.TARGET_TIME
	daily_target_seconds: int = 3 * 3600
	day_reset_hour: int = 3
	day_reset_minute: int = 0
	hotkey_enabled: bool = True

	@property
	def daily_target_formatted(self):
		hours = self.daily_target_seconds // 3600
		minutes = (self.daily_target_seconds % 3600) // 60
		if minutes > 0:
			return f"{hours}h {minutes}m"
		return f"{hours}h"

	@property
	def reset_time_formatted(self):
		return f"{self.day_reset_hour}:{self.day_reset_minute:02d} AM"

	def copy(self):
		return replace(self)

	def to_dict(self):
		return {
			"timer_mode": self.timer_mode.value,
			"daily_target_seconds": int(self.daily_target_seconds),
			"day_reset_hour": int(self.day_reset_hour),
			"day_reset_minute": int(self.day_reset_minute),
			"hotkey_enabled": bool(self.hotkey_enabled),
		}

	@classmethod
	def from_dict(cls, data):
		"""Build settings from a dict, falling back to defaults per field."""
		defaults = cls()
		try:
			mode = TimerMode(data.get("timer_mode", defaults.timer_mode.value))
		except ValueError:
			mode = defaults.timer_mode
		hotkey = data.get("hotkey_enabled", defaults.hotkey_enabled)
		return cls(
			timer_mode=mode,
			daily_target_seconds=_clamp(data.get("daily_target_seconds"), 0, None, defaults.daily_target_seconds),
			day_reset_hour=_clamp(data.get("day_reset_hour"), 0, 23, defaults.day_reset_hour),
			day_reset_minute=_clamp(data.get("day_reset_minute"), 0, 59, defaults.day_reset_minute),
			hotkey_enabled=hotkey if isinstance(hotkey, bool) else defaults.hotkey_enabled,
		)
