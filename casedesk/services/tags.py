"""
Tag lookup and creation.

Tags are identified by name within a type (type may be empty). Slugs are
derived from the name; new tags go to the end of the ordering.
"""

import logging
import re
import unicodedata
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.models.models import Tag


logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """ASCII, lowercase, dash-separated slug ("Urgente Año 2024" -> "urgente-ano-2024")."""
    decomposed = unicodedata.normalize("NFD", text or "")
    ascii_text = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    ascii_text = ascii_text.encode("ascii", "ignore").decode("ascii").lower()
    return re.sub(r"[^a-z0-9]+", "-", ascii_text).strip("-")


async def find_tag(db: AsyncSession, name: str, tag_type: Optional[str] = None) -> Optional[Tag]:
    stmt = select(Tag).where(Tag.name == name)
    stmt = stmt.where(Tag.type.is_(None) if tag_type is None else Tag.type == tag_type)
    result = await db.execute(stmt.order_by(Tag.id).limit(1))
    return result.scalar_one_or_none()


async def find_or_create_tag(
    db: AsyncSession,
    name: str,
    tag_type: Optional[str] = None,
) -> tuple[Tag, bool]:
    """Return the tag named ``name`` and whether it had to be created."""
    name = name.strip()
    tag = await find_tag(db, name, tag_type)
    if tag is not None:
        return tag, False

    highest = (await db.execute(select(func.max(Tag.order_column)))).scalar()
    tag = Tag(name=name, slug=slugify(name), type=tag_type, order_column=(highest or 0) + 1)
    db.add(tag)
    await db.flush()
    logger.info("Created tag %r (type=%s)", name, tag_type)
    return tag, True


async def resolve_tags(db: AsyncSession, names: Iterable[str]) -> tuple[list[Tag], bool]:
    """Tags for ``names`` (created when missing), deduplicated, plus whether any was new."""
    tags: list[Tag] = []
    created_any = False
    seen: set[int] = set()
    for name in names:
        if not name or not name.strip():
            continue
        tag, created = await find_or_create_tag(db, name)
        created_any = created_any or created
        if tag.id not in seen:
            seen.add(tag.id)
            tags.append(tag)
    return tags, created_any


def tag_to_dict(tag: Tag) -> dict:
    return {"id": tag.id, "name": tag.name, "type": tag.type, "slug": tag.slug}
