"""
Tags Router
Labels attachable to legal cases and legal entities.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from casedesk.core.database import get_db
from casedesk.core.errors import validation_error
from casedesk.core.security import require_user
from casedesk.models.models import Tag, User
from casedesk.services.filters import like_any
from casedesk.services.formatting import entity_display_name
from casedesk.services.records import get_or_404
from casedesk.services.tags import find_or_create_tag, find_tag, slugify


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tags", tags=["Tags"])


class TagRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=255)


class TagResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    slug: str
    type: Optional[str] = None
    order_column: int
    created_at: datetime
    updated_at: datetime


@router.get("", response_model=list[TagResponse])
async def list_tags(
    search: Optional[str] = Query(None, description="Search by name"),
    type: Optional[str] = Query(None, description="Filter by tag type"),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Tag).order_by(Tag.order_column, Tag.id)
    if search:
        stmt = stmt.where(like_any(search, Tag.name))
    if type:
        stmt = stmt.where(Tag.type == type)
    result = await db.execute(stmt)
    return result.scalars().all()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tag(
    data: TagRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Find or create a tag by name and type."""
    tag, created = await find_or_create_tag(db, data.name, data.type or None)
    await db.commit()
    await db.refresh(tag)
    return {
        "success": True,
        "created": created,
        "message": "Etiqueta creada exitosamente" if created else "La etiqueta ya existía",
        "tag": TagResponse.model_validate(tag),
    }


@router.get("/{tag_id}", response_model=TagResponse)
async def get_tag(
    tag_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_or_404(db, Tag, tag_id, "Tag")


@router.put("/{tag_id}")
async def update_tag(
    tag_id: int,
    data: TagRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    tag = await get_or_404(db, Tag, tag_id, "Tag")
    tag_type = data.type or None
    duplicate = await find_tag(db, data.name, tag_type)
    if duplicate is not None and duplicate.id != tag.id:
        raise validation_error({"name": "Ya existe una etiqueta con este nombre y tipo."})

    tag.name = data.name
    tag.slug = slugify(data.name)
    tag.type = tag_type
    await db.commit()
    await db.refresh(tag)
    return {
        "success": True,
        "message": "Etiqueta actualizada exitosamente",
        "tag": TagResponse.model_validate(tag),
    }


@router.delete("/{tag_id}")
async def delete_tag(
    tag_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    tag = await get_or_404(db, Tag, tag_id, "Tag")
    await db.delete(tag)
    await db.commit()
    logger.info("Deleted tag %s", tag_id)
    return {"success": True, "message": "Etiqueta eliminada exitosamente"}


@router.get("/{tag_id}/relations")
async def tag_relations(
    tag_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Cases and legal entities carrying the tag."""
    tag = await get_or_404(
        db, Tag, tag_id, "Tag",
        options=[selectinload(Tag.legal_cases), selectinload(Tag.legal_entities)],
    )
    cases = sorted((c for c in tag.legal_cases if c.deleted_at is None), key=lambda c: c.code)
    entities = sorted((e for e in tag.legal_entities if e.deleted_at is None), key=lambda e: e.business_name)
    return {
        "tag": {"id": tag.id, "name": tag.name, "type": tag.type},
        "legal_cases": [
            {
                "id": case.id,
                "code": case.code,
                "case_type": case.case_type.name if case.case_type else None,
                "url": f"/legal-cases/{case.id}",
            }
            for case in cases
        ],
        "legal_entities": [
            {
                "id": entity.id,
                "name": entity_display_name(entity),
                "rif": entity.rif,
                "url": f"/legal-entities/{entity.id}",
            }
            for entity in entities
        ],
    }
