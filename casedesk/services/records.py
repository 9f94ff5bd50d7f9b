"""
Record lookups shared by the routers: fetch-or-404 and uniqueness checks.
"""

from typing import Any, Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.errors import not_found, validation_error
from casedesk.models.models import SoftDeleteMixin


ModelT = TypeVar("ModelT")


async def get_or_404(
    db: AsyncSession,
    model: type[ModelT],
    record_id: int,
    resource: str,
    options: Sequence[Any] = (),
) -> ModelT:
    """Load a record by id, hiding soft-deleted rows."""
    stmt = select(model).where(model.id == record_id)
    if issubclass(model, SoftDeleteMixin):
        stmt = stmt.where(model.deleted_at.is_(None))
    if options:
        stmt = stmt.options(*options)
    record = (await db.execute(stmt)).scalar_one_or_none()
    if record is None:
        raise not_found(resource)
    return record


async def exists(db: AsyncSession, model: type, *conditions) -> bool:
    count = await db.scalar(select(func.count()).select_from(model).where(*conditions))
    return bool(count)


async def ensure_unique(
    db: AsyncSession,
    model: type,
    values: dict[str, Any],
    messages: dict[str, str],
    exclude_id: Optional[int] = None,
) -> None:
    """
    Raise a 422 listing every field whose value is already taken.

    Soft-deleted rows still hold their values. Empty values are skipped.
    """
    errors = {}
    for field, value in values.items():
        if value in (None, ""):
            continue
        conditions = [getattr(model, field) == value]
        if exclude_id is not None:
            conditions.append(model.id != exclude_id)
        if await exists(db, model, *conditions):
            errors[field] = messages.get(field, f"El valor de {field} ya está en uso.")
    if errors:
        raise validation_error(errors)
