from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..repositories import Store, get_store
from ..schemas import (
    EMOJI_OPTIONS,
    ApplyTemplateRequest,
    ApplyTemplateResult,
    EntryOut,
    TemplateCreate,
    TemplateOut,
    TemplateUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/templates",
    tags=["templates"],
)


def _get_store(store: Store = Depends(get_store)) -> Store:
    return store


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TemplateOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Template",
    responses={422: {"description": "Validation error (e.g. empty title)"}},
)
def create_template(payload: TemplateCreate, store: Store = Depends(_get_store)) -> TemplateOut:
    return TemplateOut(**store.create_template(payload))


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TemplateOut],
    summary="List Templates",
    description="All templates, oldest first.",
)
def list_templates(store: Store = Depends(_get_store)) -> List[TemplateOut]:
    return [TemplateOut(**t) for t in store.list_templates()]


# PUBLIC_INTERFACE
@router.get(
    "/emoji",
    response_model=List[str],
    summary="Emoji Options",
    description="Glyphs offered when picking a template emoji.",
)
def emoji_options() -> List[str]:
    return list(EMOJI_OPTIONS)


# PUBLIC_INTERFACE
@router.get(
    "/{template_id}",
    response_model=TemplateOut,
    summary="Get Template",
    responses={404: {"description": "Template not found"}},
)
def get_template(template_id: str, store: Store = Depends(_get_store)) -> TemplateOut:
    item = store.get_template(template_id)
    if not item:
        raise _not_found()
    return TemplateOut(**item)


# PUBLIC_INTERFACE
@router.patch(
    "/{template_id}",
    response_model=TemplateOut,
    summary="Update Template",
    description="Edit the title, emoji or color. Usage counters cannot be set directly.",
    responses={404: {"description": "Template not found"}},
)
def patch_template(
    template_id: str, payload: TemplateUpdate, store: Store = Depends(_get_store)
) -> TemplateOut:
    updated = store.update_template(template_id, payload)
    if not updated:
        raise _not_found()
    return TemplateOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Template",
    description="Delete a template. Entries created from it are kept.",
)
def delete_template(template_id: str, store: Store = Depends(_get_store)) -> Response:
    if not store.delete_template(template_id):
        logger.debug("Delete of missing template %s ignored", template_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.post(
    "/{template_id}/apply",
    response_model=ApplyTemplateResult,
    status_code=status.HTTP_201_CREATED,
    summary="Apply Template",
    description=(
        "Create an entry on the given day from the template, and bump the "
        "template's usage count and last-used time in the same step."
    ),
    responses={404: {"description": "Template not found"}},
)
def apply_template(
    template_id: str, payload: ApplyTemplateRequest, store: Store = Depends(_get_store)
) -> ApplyTemplateResult:
    result = store.apply_template(template_id, payload.date)
    if result is None:
        raise _not_found()
    entry, template = result
    return ApplyTemplateResult(entry=EntryOut(**entry), template=TemplateOut(**template))
