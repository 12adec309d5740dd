"""
Storage collaborator: sqlite-backed CRUD.
"""
from datetime import date


def _fields(day="2026-10-19", **extra):
    return {"date": day, "day_name": "Monday", "check_in_1": "09:00", **extra}


class TestEntries:
    def test_create_and_get(self, storage):
        entry = storage.create_entry("u1", _fields(location="Office"))
        assert entry["id"]
        assert entry["user_id"] == "u1"
        assert entry["check_out_1"] == ""
        assert entry["shift2_minutes"] == 0
        assert storage.get_entry("u1", entry["id"])["location"] == "Office"

    def test_get_other_users_entry(self, storage):
        entry = storage.create_entry("u1", _fields())
        assert storage.get_entry("u2", entry["id"]) is None

    def test_latest_entry_in_range(self, storage):
        storage.create_entry("u1", _fields(notes="first"))
        storage.create_entry("u1", _fields(notes="second"))
        storage.create_entry("u1", _fields(day="2026-10-20", notes="tomorrow"))
        latest = storage.find_latest_entry("u1", date(2026, 10, 19), date(2026, 10, 20))
        assert latest["notes"] == "second"
        assert storage.find_latest_entry("u1", date(2026, 10, 21), date(2026, 10, 22)) is None

    def test_find_entries_sorted_desc(self, storage):
        for day in ("2026-10-02", "2026-10-30", "2026-11-01", "2026-10-15"):
            storage.create_entry("u1", _fields(day=day))
        storage.create_entry("u2", _fields(day="2026-10-10"))

        all_days = [e["date"] for e in storage.find_entries("u1")]
        assert all_days == ["2026-11-01", "2026-10-30", "2026-10-15", "2026-10-02"]

        october = [e["date"] for e in storage.find_entries("u1", date(2026, 10, 1), date(2026, 11, 1))]
        assert october == ["2026-10-30", "2026-10-15", "2026-10-02"]

    def test_update(self, storage):
        entry = storage.create_entry("u1", _fields())
        updated = storage.update_entry("u1", entry["id"], {"check_out_1": "17:00", "shift1_minutes": 480, "bogus": 1})
        assert updated["check_out_1"] == "17:00"
        assert updated["shift1_minutes"] == 480

    def test_update_wrong_owner(self, storage):
        entry = storage.create_entry("u1", _fields())
        assert storage.update_entry("u2", entry["id"], {"notes": "x"}) is None
        assert storage.get_entry("u1", entry["id"])["notes"] == ""

    def test_delete(self, storage):
        entry = storage.create_entry("u1", _fields())
        assert storage.delete_entry("u2", entry["id"]) is False
        assert storage.delete_entry("u1", entry["id"]) is True
        assert storage.get_entry("u1", entry["id"]) is None
        assert storage.delete_entry("u1", entry["id"]) is False


class TestSettings:
    def test_lazy_defaults(self, storage):
        settings = storage.get_or_create_settings("u1")
        assert settings["monthly_salary"] == 0
        assert settings["workday_hours"] == 9
        assert settings["works_saturdays"] is False
        assert settings["currency"] == "USD"

    def test_partial_update_merges(self, storage):
        storage.update_settings("u1", {"monthly_salary": 2000, "works_saturdays": True})
        settings = storage.update_settings("u1", {"workday_hours": 8})
        assert settings["monthly_salary"] == 2000
        assert settings["works_saturdays"] is True
        assert settings["workday_hours"] == 8
        assert settings["currency"] == "USD"


class TestUsers:
    def test_create_and_find(self, storage):
        user = storage.create_user("a@example.com", "Ana", "hash")
        assert storage.find_user_by_email("a@example.com")["id"] == user["id"]
        assert storage.find_user_by_email("b@example.com") is None
