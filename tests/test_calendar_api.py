import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from completion_calendar.errors import StoreError  # noqa: E402
from completion_calendar.main import app  # noqa: E402
from completion_calendar.repositories import InMemoryStore, get_store  # noqa: E402

client = TestClient(app)


@pytest.fixture(autouse=True)
def fresh_store():
    store = InMemoryStore()
    app.dependency_overrides[get_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


def create_entry(title="Test Task", day="2025-03-05", completed=False):
    res = client.post("/api/v1/entries/", json={"title": title, "date": day, "is_completed": completed})
    assert res.status_code == 201
    return res.json()


def create_template(title="Stretch", emoji="🏃"):
    res = client.post("/api/v1/templates/", json={"title": title, "emoji": emoji})
    assert res.status_code == 201
    return res.json()


def assert_validation_envelope(res):
    assert res.status_code == 422
    body = res.json()
    assert body.get("error") == "ValidationError"
    assert body.get("message") == "Request validation failed"
    assert isinstance(body.get("detail"), list)


class TestHealth:
    def test_health_check(self):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestEntriesCRUD:
    def test_create_entry(self):
        entry = create_entry(title="  Buy milk  ")
        assert entry["title"] == "Buy milk"
        assert entry["date"].startswith("2025-03-05T00:00:00")
        assert entry["notes"] == ""
        assert entry["is_completed"] is False
        assert isinstance(entry["id"], str)

    def test_get_patch_toggle(self):
        entry = create_entry(title="Read")
        eid = entry["id"]

        res = client.get(f"/api/v1/entries/{eid}")
        assert res.status_code == 200
        assert res.json()["title"] == "Read"

        res = client.patch(f"/api/v1/entries/{eid}", json={"title": "Read book"})
        assert res.status_code == 200
        assert res.json()["title"] == "Read book"
        assert res.json()["is_completed"] is False

        res = client.post(f"/api/v1/entries/{eid}/toggle")
        assert res.status_code == 200
        assert res.json()["is_completed"] is True

    def test_missing_entry(self):
        assert client.get("/api/v1/entries/nope").status_code == 404
        res = client.patch("/api/v1/entries/nope", json={"title": "x"})
        assert res.status_code == 404
        assert res.json()["detail"] == "Entry not found"
        assert client.post("/api/v1/entries/nope/toggle").status_code == 404

    def test_delete_is_idempotent(self):
        eid = create_entry()["id"]
        res = client.delete(f"/api/v1/entries/{eid}")
        assert res.status_code == 204
        assert res.text == ""
        assert client.get(f"/api/v1/entries/{eid}").status_code == 404
        assert client.delete(f"/api/v1/entries/{eid}").status_code == 204

    def test_list_by_day_in_creation_order(self):
        create_entry(title="first", day="2025-03-05T21:00:00")
        create_entry(title="other", day="2025-03-06")
        create_entry(title="second", day="2025-03-05T06:00:00", completed=True)
        res = client.get("/api/v1/entries/?day=2025-03-05")
        assert res.status_code == 200
        assert [e["title"] for e in res.json()] == ["first", "second"]
        res = client.get("/api/v1/entries/?day=2025-03-05&completed=true")
        assert [e["title"] for e in res.json()] == ["second"]
        assert len(client.get("/api/v1/entries/").json()) == 3


class TestTemplates:
    def test_create_list_and_edit(self):
        a = create_template(title="Stretch")
        b = create_template(title="Journal", emoji="✏️")
        assert a["usage_count"] == 0
        assert a["last_used_at"] is None
        assert a["color_hex"] == "FF6B9D"

        res = client.get("/api/v1/templates/")
        assert [t["id"] for t in res.json()] == [a["id"], b["id"]]

        res = client.patch(f"/api/v1/templates/{b['id']}", json={"emoji": "🧠", "color_hex": "#00aa11"})
        assert res.status_code == 200
        assert res.json()["emoji"] == "🧠"
        assert res.json()["color_hex"] == "00AA11"
        assert res.json()["title"] == "Journal"

    def test_usage_count_cannot_be_set_by_edit(self):
        t = create_template()
        res = client.patch(f"/api/v1/templates/{t['id']}", json={"usage_count": 10})
        assert res.status_code == 200
        assert res.json()["usage_count"] == 0

    def test_apply_template(self):
        t = create_template(title="Stretch")
        for n in range(1, 4):
            res = client.post(f"/api/v1/templates/{t['id']}/apply", json={"date": "2025-03-05"})
            assert res.status_code == 201
            body = res.json()
            assert body["entry"]["title"] == "Stretch"
            assert body["entry"]["date"].startswith("2025-03-05")
            assert body["template"]["usage_count"] == n
            assert body["template"]["last_used_at"] is not None
        day = client.get("/api/v1/calendar/day/2025-03-05").json()
        assert day["summary"]["total_count"] == 3

    def test_apply_missing_template(self, fresh_store):
        res = client.post("/api/v1/templates/nope/apply", json={"date": "2025-03-05"})
        assert res.status_code == 404
        assert res.json()["detail"] == "Template not found"
        assert fresh_store.list_entries() == []

    def test_delete_template_keeps_entries(self):
        t = create_template()
        client.post(f"/api/v1/templates/{t['id']}/apply", json={"date": "2025-03-05"})
        assert client.delete(f"/api/v1/templates/{t['id']}").status_code == 204
        assert client.get(f"/api/v1/templates/{t['id']}").status_code == 404
        assert len(client.get("/api/v1/entries/").json()) == 1

    def test_emoji_options(self):
        res = client.get("/api/v1/templates/emoji")
        assert res.status_code == 200
        assert res.json()[0] == "📝"
        assert len(res.json()) == 12


class TestCalendar:
    def test_month_grid_february_2024(self):
        create_entry(title="a", day="2024-02-05", completed=True)
        create_entry(title="b", day="2024-02-05", completed=True)
        create_entry(title="c", day="2024-02-06", completed=False)
        create_entry(title="d", day="2024-01-30", completed=True)

        res = client.get("/api/v1/calendar/month?reference=2024-02-10&first_weekday=6")
        assert res.status_code == 200
        data = res.json()
        assert (data["year"], data["month"]) == (2024, 2)
        slots = data["slots"]
        assert len(slots) == 42
        assert slots[0]["date"] == "2024-01-28"
        assert slots[0]["weekday"] == 6
        assert sum(1 for s in slots if s["in_month"]) == 29
        by_date = {s["date"]: s for s in slots}
        assert by_date["2024-02-05"]["summary"]["all_completed"] is True
        assert by_date["2024-02-06"]["summary"] == {
            "total_count": 1,
            "completed_count": 0,
            "is_empty": False,
            "all_completed": False,
        }
        assert by_date["2024-01-30"]["summary"]["all_completed"] is True
        assert data["star_day_count"] == 1
        assert data["previous_reference"] == "2024-01-10"
        assert data["next_reference"] == "2024-03-10"

    def test_navigation_clamps(self):
        data = client.get("/api/v1/calendar/month?reference=2024-01-31").json()
        assert data["next_reference"] == "2024-02-29"

    def test_day_view(self):
        create_entry(title="done", day="2025-03-05", completed=True)
        create_entry(title="open", day="2025-03-05", completed=False)
        data = client.get("/api/v1/calendar/day/2025-03-05").json()
        assert [e["title"] for e in data["entries"]] == ["done", "open"]
        assert data["summary"]["completed_count"] == 1
        assert data["summary"]["total_count"] == 2
        assert data["summary"]["all_completed"] is False

        empty = client.get("/api/v1/calendar/day/2025-03-06").json()
        assert empty["entries"] == []
        assert empty["summary"]["is_empty"] is True
        assert empty["summary"]["all_completed"] is False


class TestErrors:
    def test_empty_title_rejected(self):
        assert_validation_envelope(client.post("/api/v1/entries/", json={"title": "  ", "date": "2025-03-05"}))
        assert_validation_envelope(client.post("/api/v1/templates/", json={"title": ""}))

    def test_bad_dates_rejected(self):
        assert_validation_envelope(client.post("/api/v1/entries/", json={"title": "x", "date": "not-a-date"}))
        t = create_template()
        assert_validation_envelope(client.post(f"/api/v1/templates/{t['id']}/apply", json={"date": "soon"}))

    def test_bad_first_weekday(self):
        assert_validation_envelope(client.get("/api/v1/calendar/month?first_weekday=7"))

    def test_bad_color(self):
        assert_validation_envelope(client.post("/api/v1/templates/", json={"title": "x", "color_hex": "blue"}))

    def test_store_fault_is_reported(self):
        class BrokenStore(InMemoryStore):
            def create_entry(self, data):
                raise StoreError("disk full")

        app.dependency_overrides[get_store] = lambda: BrokenStore()
        res = client.post("/api/v1/entries/", json={"title": "x", "date": "2025-03-05"})
        assert res.status_code == 500
        assert res.json() == {"error": "StoreError", "message": "disk full"}

    def test_validation_rows_name_the_field(self):
        res = client.post("/api/v1/entries/", json={"title": "  ", "date": "2025-03-05"})
        assert_validation_envelope(res)
        rows = res.json()["detail"]
        assert [r["field"] for r in rows] == ["title"]
        assert set(rows[0]) == {"field", "message", "type"}

    def test_weekday_row_names_the_query_field(self):
        rows = client.get("/api/v1/calendar/month?first_weekday=7").json()["detail"]
        assert rows[0]["field"] == "query.first_weekday"


class TestLogging:
    def test_logging_is_configured_by_the_lifespan(self, monkeypatch):
        from completion_calendar import main as main_module

        levels = []
        monkeypatch.setattr(main_module, "configure_logging", levels.append)
        with TestClient(app) as started:
            assert started.get("/").status_code == 200
        assert levels == [main_module._settings.log_level]
