import json
import os

os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from completion_calendar.export_schema import _merge_tags, export_schemas  # noqa: E402
from completion_calendar.main import openapi_tags  # noqa: E402


def test_export_writes_openapi_and_record_schemas(tmp_path):
    paths = export_schemas(str(tmp_path / "interfaces"))
    assert [os.path.basename(p) for p in paths] == ["openapi.json", "records.json"]

    with open(paths[0], encoding="utf-8") as f:
        openapi = json.load(f)
    assert "/api/v1/templates/{template_id}/apply" in openapi["paths"]
    assert {t["name"] for t in openapi["tags"]} >= {"entries", "templates", "calendar"}

    with open(paths[1], encoding="utf-8") as f:
        records = json.load(f)
    assert set(records["CalendarEntry"]["properties"]) == {
        "id", "title", "date", "notes", "is_completed", "created_at",
    }
    assert "usage_count" in records["EventTemplate"]["properties"]


def test_merge_tags_keeps_existing_and_adds_missing():
    schema = {"tags": [{"name": "entries", "description": "custom"}]}
    _merge_tags(schema)
    by_name = {t["name"]: t for t in schema["tags"]}
    assert by_name["entries"]["description"] == "custom"
    assert set(by_name) == {t["name"] for t in openapi_tags}

    bare = {}
    _merge_tags(bare)
    assert [t["name"] for t in bare["tags"]] == [t["name"] for t in openapi_tags]
