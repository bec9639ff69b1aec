from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..bucketing import entries_for_day
from ..repositories import Store, get_store
from ..schemas import EntryCreate, EntryOut, EntryUpdate
from ..settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/entries",
    tags=["entries"],
)


def _get_store(store: Store = Depends(get_store)) -> Store:
    """
    Dependency wrapper for the store to keep signatures clean.
    """
    return store


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=EntryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Entry",
    description="Add an entry to a day and return the created record.",
    responses={
        201: {"description": "Entry created successfully"},
        422: {"description": "Validation error (e.g. empty title)"},
    },
)
def create_entry(payload: EntryCreate, store: Store = Depends(_get_store)) -> EntryOut:
    """
    Create a new entry.
    """
    created = store.create_entry(payload)
    return EntryOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[EntryOut],
    summary="List Entries",
    description=(
        "List entries.\n\n"
        "Query parameters:\n"
        "- day: only entries on this calendar day (YYYY-MM-DD), ordered by creation time\n"
        "- completed: filter by completion status"
    ),
)
def list_entries(
    day: Optional[date] = Query(None, description="Calendar day to bucket by"),
    completed: Optional[bool] = Query(None, description="Filter by completion status"),
    store: Store = Depends(_get_store),
) -> List[EntryOut]:
    items = store.list_entries()
    if day is not None:
        items = entries_for_day(items, day, get_settings().tz)
    if completed is not None:
        items = [e for e in items if e["is_completed"] == completed]
    return [EntryOut(**e) for e in items]


# PUBLIC_INTERFACE
@router.get(
    "/{entry_id}",
    response_model=EntryOut,
    summary="Get Entry",
    responses={404: {"description": "Entry not found"}},
)
def get_entry(entry_id: str, store: Store = Depends(_get_store)) -> EntryOut:
    item = store.get_entry(entry_id)
    if not item:
        raise _not_found()
    return EntryOut(**item)


# PUBLIC_INTERFACE
@router.patch(
    "/{entry_id}",
    response_model=EntryOut,
    summary="Update Entry",
    description="Partially update the title, day, notes or completion flag of an entry.",
    responses={404: {"description": "Entry not found"}},
)
def patch_entry(entry_id: str, payload: EntryUpdate, store: Store = Depends(_get_store)) -> EntryOut:
    updated = store.update_entry(entry_id, payload)
    if not updated:
        raise _not_found()
    return EntryOut(**updated)


# PUBLIC_INTERFACE
@router.post(
    "/{entry_id}/toggle",
    response_model=EntryOut,
    summary="Toggle Completion",
    description="Flip the completion flag of an entry.",
    responses={404: {"description": "Entry not found"}},
)
def toggle_entry(entry_id: str, store: Store = Depends(_get_store)) -> EntryOut:
    updated = store.toggle_entry(entry_id)
    if not updated:
        raise _not_found()
    return EntryOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Entry",
    description="Delete an entry. Deleting an entry that no longer exists is a no-op.",
    responses={204: {"description": "Entry deleted or already gone"}},
)
def delete_entry(entry_id: str, store: Store = Depends(_get_store)) -> Response:
    if not store.delete_entry(entry_id):
        logger.debug("Delete of missing entry %s ignored", entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
