from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from functools import lru_cache
from threading import RLock
from typing import Callable, List, Optional, Tuple, Union

from .events import ChangeNotifier, Listener, StoreChange
from .models import CalendarEntryEntity, EventTemplateEntity
from .schemas import EntryCreate, EntryUpdate, TemplateCreate, TemplateUpdate
from .settings import get_settings
from .templating import entry_from_template, mark_used
from .utils import utcnow

logger = logging.getLogger(__name__)

AppliedTemplate = Tuple[CalendarEntryEntity, EventTemplateEntity]


def new_id() -> str:
    return uuid.uuid4().hex


# PUBLIC_INTERFACE
class Store(ABC):
    """
    Abstract contract for entry/template storage backends.

    Missing ids are not errors: lookups return None, deletes return False, and
    nothing is notified. Every committed mutation is announced to subscribers
    as a StoreChange once its effects are visible.
    """

    def __init__(self) -> None:
        self._notifier = ChangeNotifier()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        return self._notifier.subscribe(listener)

    def _notify(self, action: str, kind: str, record_id: str) -> None:
        logger.debug("%s %s %s", kind, action, record_id)
        self._notifier.notify(StoreChange(action=action, kind=kind, record_id=record_id))

    # Entries

    @abstractmethod
    def create_entry(self, data: EntryCreate) -> CalendarEntryEntity:
        """Create and return a new entry."""

    @abstractmethod
    def get_entry(self, entry_id: str) -> Optional[CalendarEntryEntity]:
        """Return an entry by id, or None if not found."""

    @abstractmethod
    def update_entry(self, entry_id: str, data: EntryUpdate) -> Optional[CalendarEntryEntity]:
        """Update provided fields of an entry. Return the updated entry or None if not found."""

    @abstractmethod
    def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry. Return True if deleted, False if not found."""

    @abstractmethod
    def list_entries(self) -> List[CalendarEntryEntity]:
        """Return every entry, oldest first."""

    def toggle_entry(self, entry_id: str) -> Optional[CalendarEntryEntity]:
        """Flip the completion flag of an entry."""
        current = self.get_entry(entry_id)
        if current is None:
            return None
        return self.update_entry(entry_id, EntryUpdate(is_completed=not current["is_completed"]))

    # Templates

    @abstractmethod
    def create_template(self, data: TemplateCreate) -> EventTemplateEntity:
        """Create and return a new template with zero usage."""

    @abstractmethod
    def get_template(self, template_id: str) -> Optional[EventTemplateEntity]:
        """Return a template by id, or None if not found."""

    @abstractmethod
    def update_template(self, template_id: str, data: TemplateUpdate) -> Optional[EventTemplateEntity]:
        """Edit title/emoji/color of a template. Return it or None if not found."""

    @abstractmethod
    def delete_template(self, template_id: str) -> bool:
        """Delete a template. Return True if deleted, False if not found."""

    @abstractmethod
    def list_templates(self) -> List[EventTemplateEntity]:
        """Return every template ordered by created_at ascending."""

    @abstractmethod
    def apply_template(
        self, template_id: str, on_date: Union[date, datetime]
    ) -> Optional[AppliedTemplate]:
        """
        Create an entry from a template and bump the template's usage counter.

        Both effects are committed together or not at all. Returns the new
        entry and the updated template, or None if the template does not exist.
        """


class InMemoryStore(Store):
    """
    Thread-safe in-memory store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        super().__init__()
        self._lock = RLock()
        self._entries: dict[str, CalendarEntryEntity] = {}
        self._templates: dict[str, EventTemplateEntity] = {}

    def _now(self) -> datetime:
        return utcnow()

    def _build_entry(self, data: EntryCreate) -> CalendarEntryEntity:
        return {
            "id": new_id(),
            "title": data.title,
            "date": data.date,
            "notes": data.notes,
            "is_completed": data.is_completed,
            "created_at": self._now(),
        }

    def create_entry(self, data: EntryCreate) -> CalendarEntryEntity:
        entity = self._build_entry(data)
        with self._lock:
            self._entries[entity["id"]] = entity
        self._notify("created", "entry", entity["id"])
        return entity.copy()

    def get_entry(self, entry_id: str) -> Optional[CalendarEntryEntity]:
        with self._lock:
            item = self._entries.get(entry_id)
            return None if item is None else item.copy()

    def update_entry(self, entry_id: str, data: EntryUpdate) -> Optional[CalendarEntryEntity]:
        with self._lock:
            existing = self._entries.get(entry_id)
            if existing is None:
                return None

            # Update only provided fields
            updated = existing.copy()
            if data.title is not None:
                updated["title"] = data.title
            if data.date is not None:
                updated["date"] = data.date
            if data.notes is not None:
                updated["notes"] = data.notes
            if data.is_completed is not None:
                updated["is_completed"] = data.is_completed

            self._entries[entry_id] = updated
        self._notify("updated", "entry", entry_id)
        return updated.copy()

    def toggle_entry(self, entry_id: str) -> Optional[CalendarEntryEntity]:
        # Read and flip under one lock so concurrent toggles both count
        with self._lock:
            existing = self._entries.get(entry_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated["is_completed"] = not existing["is_completed"]
            self._entries[entry_id] = updated
        self._notify("updated", "entry", entry_id)
        return updated.copy()

    def delete_entry(self, entry_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(entry_id, None) is not None
        if removed:
            self._notify("deleted", "entry", entry_id)
        return removed

    def list_entries(self) -> List[CalendarEntryEntity]:
        with self._lock:
            items = sorted(self._entries.values(), key=lambda e: e["created_at"])
            # Return copies to avoid external mutation
            return [e.copy() for e in items]

    def create_template(self, data: TemplateCreate) -> EventTemplateEntity:
        entity: EventTemplateEntity = {
            "id": new_id(),
            "title": data.title,
            "emoji": data.emoji,
            "color_hex": data.color_hex,
            "created_at": self._now(),
            "last_used_at": None,
            "usage_count": 0,
        }
        with self._lock:
            self._templates[entity["id"]] = entity
        self._notify("created", "template", entity["id"])
        return entity.copy()

    def get_template(self, template_id: str) -> Optional[EventTemplateEntity]:
        with self._lock:
            item = self._templates.get(template_id)
            return None if item is None else item.copy()

    def update_template(self, template_id: str, data: TemplateUpdate) -> Optional[EventTemplateEntity]:
        with self._lock:
            existing = self._templates.get(template_id)
            if existing is None:
                return None

            updated = existing.copy()
            if data.title is not None:
                updated["title"] = data.title
            if data.emoji is not None:
                updated["emoji"] = data.emoji
            if "color_hex" in data.model_fields_set:
                # Respect explicit clearing of the color
                updated["color_hex"] = data.color_hex

            self._templates[template_id] = updated
        self._notify("updated", "template", template_id)
        return updated.copy()

    def delete_template(self, template_id: str) -> bool:
        with self._lock:
            removed = self._templates.pop(template_id, None) is not None
        if removed:
            self._notify("deleted", "template", template_id)
        return removed

    def list_templates(self) -> List[EventTemplateEntity]:
        with self._lock:
            items = sorted(self._templates.values(), key=lambda t: t["created_at"])
            return [t.copy() for t in items]

    def apply_template(
        self, template_id: str, on_date: Union[date, datetime]
    ) -> Optional[AppliedTemplate]:
        with self._lock:
            template = self._templates.get(template_id)
            if template is None:
                return None
            # Build both records before touching state so a failure leaves neither behind
            entry = self._build_entry(entry_from_template(template, on_date))
            used = mark_used(template, self._now())
            self._entries[entry["id"]] = entry
            self._templates[template_id] = used
        self._notify("applied", "template", template_id)
        return entry.copy(), used.copy()


def build_store(backend: str, sqlite_db_path: str) -> Store:
    """
    Construct a store for the given backend. Initialization failures propagate
    as StoreError; there is no fallback backend.
    """
    if backend == "sqlite":
        from .db import SQLiteStore

        return SQLiteStore(sqlite_db_path)
    return InMemoryStore()


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_store() -> Store:
    """
    Return the process-wide store configured by settings.
    - memory: InMemoryStore
    - sqlite: SQLiteStore at SQLITE_DB_PATH
    """
    settings = get_settings()
    store = build_store(settings.persistence_backend, settings.sqlite_db_path)
    logger.info("Using %s store", settings.persistence_backend)
    return store
