"""
Tag Lists Router
Catalog of tag names with descriptions, plus a small search used by the
tag picker.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.errors import validation_error
from casedesk.core.security import require_user
from casedesk.models.models import Tag, TagList, User
from casedesk.services.filters import like_any
from casedesk.services.records import ensure_unique, exists, get_or_404


router = APIRouter(prefix="/api/tag-lists", tags=["Tag Lists"])

UNIQUE_MESSAGES = {"name": "Ya existe una etiqueta con este nombre."}
PICKER_LIMIT = 20


class TagListRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class TagListResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


@router.get("", response_model=list[TagListResponse])
async def list_tag_lists(
    search: Optional[str] = Query(None, description="Search name/description"),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(TagList).order_by(TagList.name)
    if search:
        stmt = stmt.where(like_any(search, TagList.name, TagList.description))
    result = await db.execute(stmt)
    return result.scalars().all()


@router.get("/search")
async def search_tag_lists(
    search: Optional[str] = Query(None, max_length=255),
    except_ids: list[int] = Query([], alias="except"),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Up to 20 catalog entries for the tag picker, skipping ``except`` ids."""
    stmt = select(TagList).order_by(TagList.name).limit(PICKER_LIMIT)
    if search:
        stmt = stmt.where(like_any(search, TagList.name, TagList.description))
    if except_ids:
        stmt = stmt.where(TagList.id.not_in(except_ids))
    result = await db.execute(stmt)
    return {
        "data": [
            {"id": item.id, "name": item.name, "description": item.description}
            for item in result.scalars()
        ]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tag_list(
    data: TagListRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_unique(db, TagList, {"name": data.name}, UNIQUE_MESSAGES)
    item = TagList(name=data.name, description=data.description)
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return {
        "success": True,
        "message": "Etiqueta creada exitosamente.",
        "tag_list": TagListResponse.model_validate(item),
    }


@router.get("/{tag_list_id}", response_model=TagListResponse)
async def get_tag_list(
    tag_list_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_or_404(db, TagList, tag_list_id, "Tag list")


@router.put("/{tag_list_id}")
async def update_tag_list(
    tag_list_id: int,
    data: TagListRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    item = await get_or_404(db, TagList, tag_list_id, "Tag list")
    await ensure_unique(db, TagList, {"name": data.name}, UNIQUE_MESSAGES, exclude_id=item.id)
    item.name = data.name
    item.description = data.description
    await db.commit()
    await db.refresh(item)
    return {
        "success": True,
        "message": "Etiqueta actualizada exitosamente.",
        "tag_list": TagListResponse.model_validate(item),
    }


@router.delete("/{tag_list_id}")
async def delete_tag_list(
    tag_list_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Refuses while a tag with the same name is in use."""
    item = await get_or_404(db, TagList, tag_list_id, "Tag list")
    if await exists(db, Tag, Tag.name == item.name):
        raise validation_error({
            "tag_list": "No se puede eliminar la etiqueta porque está siendo utilizada en uno o más casos legales.",
        })
    await db.delete(item)
    await db.commit()
    return {"success": True, "message": "Etiqueta eliminada exitosamente."}
