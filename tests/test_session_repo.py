import json
from datetime import datetime, timedelta

from BackEnd.core.models import Session
from BackEnd.core.paths import session_file
from BackEnd.repos import session_repo


def local(*args):
	return datetime(*args).astimezone()

def ended(tag, start, seconds):
	return Session(
		tag=tag, start=start, end=start + timedelta(seconds=seconds),
		duration_seconds=seconds, created_at=start, updated_at=start)

def test_missing_bucket_loads_empty(data_dir):
	assert session_repo.load_sessions(local(2024, 5, 2, 10), 3, data_dir) == []

def test_save_then_load_round_trips_sorted(data_dir):
	day = local(2024, 5, 2, 10)
	late = ended("Dev", local(2024, 5, 2, 15), 600)
	early = ended("Design", local(2024, 5, 2, 9), 300)
	session_repo.save_sessions([late, early], day, 3, data_dir)
	session_repo.upsert_session(late, 3, data_dir)
	assert session_repo.load_sessions(day, 3, data_dir) == [early, late]

def test_bucket_file_follows_reset_hour(data_dir):
	night = ended("Late", local(2024, 5, 2, 2, 59), 60)
	session_repo.upsert_session(night, 3, data_dir)
	assert session_file("2024-05-01", data_dir).exists()
	assert not session_file("2024-05-02", data_dir).exists()
	assert session_repo.load_sessions(local(2024, 5, 1, 20), 3, data_dir) == [night]

def test_on_disk_keys_are_snake_case(data_dir):
	s = ended("Design", local(2024, 5, 2, 9), 300)
	session_repo.upsert_session(s, 3, data_dir)
	raw = json.loads(session_file("2024-05-02", data_dir).read_text(encoding="utf-8"))
	assert set(raw[0]) == {
		"id", "start", "end", "duration_seconds", "tag", "description",
		"remarks", "created_at", "updated_at"}
	assert raw[0]["start"].endswith("Z")
	assert "." in raw[0]["start"]

def test_active_session_serializes_null_end(data_dir):
	s = Session(tag="Dev", start=local(2024, 5, 2, 9))
	session_repo.upsert_session(s, 3, data_dir)
	raw = json.loads(session_file("2024-05-02", data_dir).read_text(encoding="utf-8"))
	assert raw[0]["end"] is None
	assert session_repo.load_sessions(s.start, 3, data_dir)[0].is_active

def test_upsert_twice_is_byte_identical(data_dir):
	s = ended("Design", local(2024, 5, 2, 9), 300)
	session_repo.upsert_session(s, 3, data_dir)
	first = session_file("2024-05-02", data_dir).read_bytes()
	session_repo.upsert_session(s, 3, data_dir)
	assert session_file("2024-05-02", data_dir).read_bytes() == first

def test_upsert_replaces_by_id(data_dir):
	s = ended("Design", local(2024, 5, 2, 9), 300)
	session_repo.upsert_session(s, 3, data_dir)
	s.description = "wireframes"
	session_repo.upsert_session(s, 3, data_dir)
	loaded = session_repo.load_sessions(s.start, 3, data_dir)
	assert len(loaded) == 1
	assert loaded[0].description == "wireframes"

def test_delete_removes_only_matching_id(data_dir):
	a = ended("A", local(2024, 5, 2, 9), 60)
	b = ended("B", local(2024, 5, 2, 10), 60)
	session_repo.save_sessions([a, b], a.start, 3, data_dir)
	session_repo.delete_session(a, 3, data_dir)
	assert session_repo.load_sessions(a.start, 3, data_dir) == [b]

def test_corrupt_bucket_loads_empty(data_dir):
	path = session_file("2024-05-02", data_dir)
	path.write_text("{{{", encoding="utf-8")
	assert session_repo.load_sessions(local(2024, 5, 2, 12), 3, data_dir) == []

def test_bad_entries_are_skipped(data_dir):
	good = ended("Good", local(2024, 5, 2, 9), 60)
	path = session_file("2024-05-02", data_dir)
	path.write_text(json.dumps([{"id": "x"}, good.to_dict()]), encoding="utf-8")
	assert session_repo.load_sessions(good.start, 3, data_dir) == [good]

def test_total_seconds_worked_includes_live_session(data_dir):
	day = local(2024, 5, 2, 9)
	session_repo.save_sessions([
		ended("A", day, 600),
		Session(tag="B", start=day + timedelta(hours=1)),
	], day, 3, data_dir)
	now = day + timedelta(hours=1, seconds=90)
	assert session_repo.total_seconds_worked(day, 3, data_dir, now=now) == 690

def bucket_ids(data_dir):
	from BackEnd.core.paths import sessions_dir

	found = {}
	for path in sessions_dir(data_dir).glob("*.json"):
		found[path.stem] = [item["id"] for item in json.loads(path.read_text(encoding="utf-8"))]
	return found

def test_candidate_keys_are_start_day_and_day_before():
	assert session_repo.candidate_keys(local(2024, 5, 2, 4)) == ["2024-05-02", "2024-05-01"]

def test_edit_after_reset_hour_change_stays_in_owning_bucket(data_dir):
	s = ended("Early", local(2024, 5, 2, 4), 60)
	session_repo.upsert_session(s, 3, data_dir)
	s.remarks = "edited"
	session_repo.upsert_session(s, 5, data_dir)
	assert bucket_ids(data_dir) == {"2024-05-02": [s.id]}
	assert session_repo.load_sessions(local(2024, 5, 2, 12), 3, data_dir)[0].remarks == "edited"

def test_delete_after_reset_hour_change_finds_owning_bucket(data_dir):
	s = ended("Early", local(2024, 5, 2, 4), 60)
	session_repo.upsert_session(s, 3, data_dir)
	session_repo.delete_session(s, 5, data_dir)
	assert bucket_ids(data_dir) == {"2024-05-02": []}

def test_delete_of_unknown_session_writes_nothing(data_dir):
	session_repo.delete_session(ended("Ghost", local(2024, 5, 2, 9), 60), 3, data_dir)
	assert bucket_ids(data_dir) == {}

def test_load_sessions_accepts_a_plain_date(data_dir):
	from datetime import date

	s = ended("Design", local(2024, 5, 2, 9), 300)
	session_repo.upsert_session(s, 3, data_dir)
	assert session_repo.load_sessions(date(2024, 5, 2), 3, data_dir) == [s]
