"""
Write the API's OpenAPI document and the persisted record schemas to disk.

The record schemas (calendar entry and event template) are the interop shape of
stored data; the OpenAPI document describes the local API a UI shell calls.

Usage:
    python -m completion_calendar.export_schema [OUTPUT_DIR]

Notes:
- OUTPUT_DIR defaults to ./interfaces
- Files written: openapi.json, records.json
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from .main import app, openapi_tags
from .schemas import EntryOut, TemplateOut


def _merge_tags(schema: Dict[str, Any]) -> None:
    """Add any of the app's tag descriptions the generated document lacks."""
    by_name = {t["name"]: t for t in schema.get("tags") or [] if isinstance(t, dict) and "name" in t}
    for tag in openapi_tags:
        by_name.setdefault(tag["name"], tag)
    schema["tags"] = list(by_name.values())


def record_schemas() -> Dict[str, Any]:
    return {
        "CalendarEntry": EntryOut.model_json_schema(),
        "EventTemplate": TemplateOut.model_json_schema(),
    }


def _write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)


# PUBLIC_INTERFACE
def export_schemas(out_dir: Optional[str] = None) -> List[str]:
    """
    Write openapi.json and records.json into ``out_dir`` (created as needed)
    and return the written file paths.
    """
    target = out_dir or os.path.join(os.getcwd(), "interfaces")
    os.makedirs(target, exist_ok=True)

    schema = app.openapi()
    _merge_tags(schema)

    openapi_path = os.path.join(target, "openapi.json")
    records_path = os.path.join(target, "records.json")
    _write_json(openapi_path, schema)
    _write_json(records_path, record_schemas())
    return [openapi_path, records_path]


def main() -> None:
    out_dir = sys.argv[1] if len(sys.argv) > 1 else None
    for path in export_schemas(out_dir):
        print(f"Wrote {path}")


if __name__ == "__main__":
    main()
