from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from threading import RLock
from typing import Generator, List, Optional, Union

from .errors import StoreError
from .models import CalendarEntryEntity, EventTemplateEntity
from .repositories import AppliedTemplate, Store, new_id
from .schemas import EntryCreate, EntryUpdate, TemplateCreate, TemplateUpdate
from .templating import entry_from_template, mark_used
from .utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _EntryCols:
    table: str = "calendar_entries"
    id: str = "id"
    title: str = "title"
    date: str = "date"
    notes: str = "notes"
    is_completed: str = "is_completed"
    created_at: str = "created_at"


@dataclass(frozen=True)
class _TemplateCols:
    table: str = "event_templates"
    id: str = "id"
    title: str = "title"
    emoji: str = "emoji"
    color_hex: str = "color_hex"
    created_at: str = "created_at"
    last_used_at: str = "last_used_at"
    usage_count: str = "usage_count"


_E = _EntryCols()
_T = _TemplateCols()


def _parse_dt(s: Optional[str]) -> Optional[datetime]:
    if s is None:
        return None
    return datetime.fromisoformat(s)


class SQLiteStore(Store):
    """
    On-device SQLite store implementing the Store interface.

    Each operation runs in its own connection and transaction, serialized by a
    store-level lock. Read-modify-write operations also take the database write
    lock up front (BEGIN IMMEDIATE) so other connections cannot interleave. Any
    sqlite3 failure rolls the transaction back and surfaces as StoreError.
    """

    def __init__(self, db_path: str) -> None:
        super().__init__()
        self._lock = RLock()
        self._db_path = db_path
        try:
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        except OSError as e:
            raise StoreError(f"Could not create data directory for {db_path}: {e}") from e
        self._init_db()

    @contextmanager
    def _conn(self, immediate: bool = False) -> Generator[sqlite3.Connection, None, None]:
        with self._lock:
            try:
                conn = sqlite3.connect(self._db_path)
            except sqlite3.Error as e:
                logger.error("Could not open %s: %s", self._db_path, e)
                raise StoreError(f"Could not open database: {e}") from e
            conn.row_factory = sqlite3.Row
            try:
                if immediate:
                    conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error("Store operation failed: %s", e)
                raise StoreError(f"Store operation failed: {e}") from e
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_E.table} (
                    {_E.id} TEXT PRIMARY KEY,
                    {_E.title} TEXT NOT NULL,
                    {_E.date} TEXT NOT NULL,
                    {_E.notes} TEXT NOT NULL DEFAULT '',
                    {_E.is_completed} INTEGER NOT NULL DEFAULT 0,
                    {_E.created_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} TEXT PRIMARY KEY,
                    {_T.title} TEXT NOT NULL,
                    {_T.emoji} TEXT NOT NULL,
                    {_T.color_hex} TEXT NULL,
                    {_T.created_at} TEXT NOT NULL,
                    {_T.last_used_at} TEXT NULL,
                    {_T.usage_count} INTEGER NOT NULL DEFAULT 0 CHECK ({_T.usage_count} >= 0)
                )
                """
            )
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{_E.table}_date ON {_E.table}({_E.date})")
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_E.table}_created_at ON {_E.table}({_E.created_at})"
            )

    def _row_to_entry(self, row: sqlite3.Row) -> CalendarEntryEntity:
        return {
            "id": str(row[_E.id]),
            "title": str(row[_E.title]),
            "date": _parse_dt(row[_E.date]),  # type: ignore
            "notes": str(row[_E.notes]),
            "is_completed": bool(row[_E.is_completed]),
            "created_at": _parse_dt(row[_E.created_at]),  # type: ignore
        }

    def _row_to_template(self, row: sqlite3.Row) -> EventTemplateEntity:
        return {
            "id": str(row[_T.id]),
            "title": str(row[_T.title]),
            "emoji": str(row[_T.emoji]),
            "color_hex": row[_T.color_hex],
            "created_at": _parse_dt(row[_T.created_at]),  # type: ignore
            "last_used_at": _parse_dt(row[_T.last_used_at]),
            "usage_count": int(row[_T.usage_count]),
        }

    def _insert_entry(self, conn: sqlite3.Connection, data: EntryCreate) -> CalendarEntryEntity:
        entity: CalendarEntryEntity = {
            "id": new_id(),
            "title": data.title,
            "date": data.date,
            "notes": data.notes,
            "is_completed": data.is_completed,
            "created_at": utcnow(),
        }
        conn.execute(
            f"""
            INSERT INTO {_E.table} ({_E.id}, {_E.title}, {_E.date}, {_E.notes},
                {_E.is_completed}, {_E.created_at})
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                entity["id"],
                entity["title"],
                entity["date"].isoformat(),
                entity["notes"],
                1 if entity["is_completed"] else 0,
                entity["created_at"].isoformat(),
            ),
        )
        return entity

    def _select_entry(self, conn: sqlite3.Connection, entry_id: str) -> Optional[CalendarEntryEntity]:
        row = conn.execute(f"SELECT * FROM {_E.table} WHERE {_E.id} = ?", (entry_id,)).fetchone()
        return self._row_to_entry(row) if row else None

    def _select_template(self, conn: sqlite3.Connection, template_id: str) -> Optional[EventTemplateEntity]:
        row = conn.execute(f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (template_id,)).fetchone()
        return self._row_to_template(row) if row else None

    # Entries

    def create_entry(self, data: EntryCreate) -> CalendarEntryEntity:
        with self._conn() as conn:
            entity = self._insert_entry(conn, data)
        self._notify("created", "entry", entity["id"])
        return entity

    def get_entry(self, entry_id: str) -> Optional[CalendarEntryEntity]:
        with self._conn() as conn:
            return self._select_entry(conn, entry_id)

    def update_entry(self, entry_id: str, data: EntryUpdate) -> Optional[CalendarEntryEntity]:
        with self._conn(immediate=True) as conn:
            current = self._select_entry(conn, entry_id)
            if current is None:
                return None

            title = data.title if data.title is not None else current["title"]
            entry_date = data.date if data.date is not None else current["date"]
            notes = data.notes if data.notes is not None else current["notes"]
            completed = data.is_completed if data.is_completed is not None else current["is_completed"]
            conn.execute(
                f"""
                UPDATE {_E.table}
                SET {_E.title} = ?, {_E.date} = ?, {_E.notes} = ?, {_E.is_completed} = ?
                WHERE {_E.id} = ?
                """,
                (title, entry_date.isoformat(), notes, 1 if completed else 0, entry_id),
            )
            updated = self._select_entry(conn, entry_id)
            assert updated is not None
        self._notify("updated", "entry", entry_id)
        return updated

    def toggle_entry(self, entry_id: str) -> Optional[CalendarEntryEntity]:
        with self._conn(immediate=True) as conn:
            cur = conn.execute(
                f"UPDATE {_E.table} SET {_E.is_completed} = 1 - {_E.is_completed} WHERE {_E.id} = ?",
                (entry_id,),
            )
            if cur.rowcount == 0:
                return None
            updated = self._select_entry(conn, entry_id)
        self._notify("updated", "entry", entry_id)
        return updated

    def delete_entry(self, entry_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_E.table} WHERE {_E.id} = ?", (entry_id,))
            removed = cur.rowcount > 0
        if removed:
            self._notify("deleted", "entry", entry_id)
        return removed

    def list_entries(self) -> List[CalendarEntryEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_E.table} ORDER BY {_E.created_at} ASC, rowid ASC"
            ).fetchall()
            return [self._row_to_entry(r) for r in rows]

    # Templates

    def create_template(self, data: TemplateCreate) -> EventTemplateEntity:
        entity: EventTemplateEntity = {
            "id": new_id(),
            "title": data.title,
            "emoji": data.emoji,
            "color_hex": data.color_hex,
            "created_at": utcnow(),
            "last_used_at": None,
            "usage_count": 0,
        }
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.id}, {_T.title}, {_T.emoji}, {_T.color_hex},
                    {_T.created_at}, {_T.last_used_at}, {_T.usage_count})
                VALUES (?, ?, ?, ?, ?, NULL, 0)
                """,
                (
                    entity["id"],
                    entity["title"],
                    entity["emoji"],
                    entity["color_hex"],
                    entity["created_at"].isoformat(),
                ),
            )
        self._notify("created", "template", entity["id"])
        return entity

    def get_template(self, template_id: str) -> Optional[EventTemplateEntity]:
        with self._conn() as conn:
            return self._select_template(conn, template_id)

    def update_template(self, template_id: str, data: TemplateUpdate) -> Optional[EventTemplateEntity]:
        with self._conn(immediate=True) as conn:
            current = self._select_template(conn, template_id)
            if current is None:
                return None

            title = data.title if data.title is not None else current["title"]
            emoji = data.emoji if data.emoji is not None else current["emoji"]
            color = data.color_hex if "color_hex" in data.model_fields_set else current["color_hex"]
            conn.execute(
                f"""
                UPDATE {_T.table}
                SET {_T.title} = ?, {_T.emoji} = ?, {_T.color_hex} = ?
                WHERE {_T.id} = ?
                """,
                (title, emoji, color, template_id),
            )
            updated = self._select_template(conn, template_id)
            assert updated is not None
        self._notify("updated", "template", template_id)
        return updated

    def delete_template(self, template_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.table} WHERE {_T.id} = ?", (template_id,))
            removed = cur.rowcount > 0
        if removed:
            self._notify("deleted", "template", template_id)
        return removed

    def list_templates(self) -> List[EventTemplateEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_T.table} ORDER BY {_T.created_at} ASC, rowid ASC"
            ).fetchall()
            return [self._row_to_template(r) for r in rows]

    def apply_template(
        self, template_id: str, on_date: Union[date, datetime]
    ) -> Optional[AppliedTemplate]:
        # Entry insert and usage bump share one write transaction
        with self._conn(immediate=True) as conn:
            template = self._select_template(conn, template_id)
            if template is None:
                return None
            entry = self._insert_entry(conn, entry_from_template(template, on_date))
            used = mark_used(template, utcnow())
            conn.execute(
                f"""
                UPDATE {_T.table}
                SET {_T.usage_count} = {_T.usage_count} + 1, {_T.last_used_at} = ?
                WHERE {_T.id} = ?
                """,
                (used["last_used_at"].isoformat(), template_id),  # type: ignore[union-attr]
            )
            used = self._select_template(conn, template_id)
            assert used is not None
        self._notify("applied", "template", template_id)
        return entry, used
