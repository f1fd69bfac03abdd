import math
from datetime import date, datetime, timezone, timedelta

def now():
	"""Return the current local time, timezone-aware, truncated to milliseconds."""
	current = datetime.now().astimezone()
	return current.replace(microsecond=(current.microsecond // 1000) * 1000)

def local(instant):
	"""Return instant as an aware local datetime (naive values are taken as local)."""
	return instant.astimezone()

def to_iso(instant):
	"""Encode an instant as ISO-8601 UTC with millisecond fraction, e.g. 2024-05-02T06:59:00.000Z."""
	utc = local(instant).astimezone(timezone.utc)
	return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"

def from_iso(text):
	"""Decode an ISO-8601 string into an aware local datetime.

	Z and numeric offsets are honoured; strings without an offset are taken as
	local time, like naive datetimes passed to local().
	"""
	text = text.strip()
	if text.endswith("Z") or text.endswith("z"):
		text = text[:-1] + "+00:00"
	return datetime.fromisoformat(text).astimezone()

def day_key(instant, reset_hour=3):
	"""Return the YYYY-MM-DD bucket for an instant.

	An instant whose local hour is before reset_hour belongs to the previous
	calendar day. A plain date (e.g. from a date picker) is its own bucket.
	"""
	if isinstance(instant, date) and not isinstance(instant, datetime):
		return instant.isoformat()
	moment = local(instant)
	if moment.hour < reset_hour:
		moment = moment - timedelta(days=1)
	return moment.date().isoformat()

def seconds_between(start, end):
	"""Whole seconds from start to end (floored, may be negative)."""
	return math.floor((end - start).total_seconds())

def fmt_hm(seconds: int) -> str:
	"""Format seconds as H:MM, or 0:MM under an hour."""
	seconds = max(0, int(seconds))
	h = seconds // 3600
	m = (seconds % 3600) // 60
	if h > 0:
		return f"{h}:{m:02}"
	return f"0:{m:02}"

def fmt_hms(seconds: int) -> str:
	"""Format seconds as H:MM:SS, or M:SS under an hour."""
	seconds = max(0, int(seconds))
	h = seconds // 3600
	m = (seconds % 3600) // 60
	s = seconds % 60
	if h > 0:
		return f"{h}:{m:02}:{s:02}"
	return f"{m}:{s:02}"

def fmt_short(seconds: int) -> str:
	"""Format seconds as '1h 5m' or '12m'."""
	seconds = max(0, int(seconds))
	h = seconds // 3600
	m = (seconds % 3600) // 60
	if h > 0:
		return f"{h}h {m}m"
	return f"{m}m"

def fmt_time_of_day(instant):
	"""Format an instant as e.g. '9:05 AM' in local time."""
	moment = local(instant)
	hour = moment.hour % 12 or 12
	suffix = "AM" if moment.hour < 12 else "PM"
	return f"{hour}:{moment.minute:02} {suffix}"
