"""
Pagination helpers.

Pages are 1-based. The metadata mirrors what the frontend pagination
component expects: current/last page, from/to row numbers and a list of
links (previous, one per page, next).
"""

import math
from typing import Any, Optional, Sequence, TypeVar
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")

CASE_PAGE_SIZES = (5, 10, 20, 50, 100, 200, 500, 1000)
DEADLINE_PAGE_SIZES = (1, 5, 10, 20, 50, 100)
DEFAULT_PER_PAGE = 10


class PageLink(BaseModel):
    url: Optional[str] = None
    label: str
    active: bool = False


class PageMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int
    last_page: int
    per_page: int
    total: int
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None
    links: list[PageLink] = []


def page_count(total: int, per_page: int) -> int:
    """Number of pages needed for ``total`` rows (0 for an empty dataset)."""
    if total <= 0:
        return 0
    return math.ceil(total / per_page)


def paginate_list(rows: Sequence[T], page: int, per_page: int) -> list[T]:
    """Rows on ``page``; empty when the page is out of range."""
    if page < 1 or per_page < 1:
        return []
    start = (page - 1) * per_page
    return list(rows[start:start + per_page])


def resolve_per_page(
    value: Any,
    allowed: Sequence[int] = CASE_PAGE_SIZES,
    default: int = DEFAULT_PER_PAGE,
) -> int:
    """Accept ``value`` only when it is one of ``allowed``."""
    try:
        per_page = int(value)
    except (TypeError, ValueError):
        return default
    return per_page if per_page in allowed else default


def _page_url(path: str, params: Optional[dict], page: int, page_param: str) -> str:
    query = {k: v for k, v in (params or {}).items() if v is not None and k != page_param}
    query[page_param] = page
    return f"{path}?{urlencode(query, doseq=True)}"


def build_meta(
    total: int,
    page: int,
    per_page: int,
    path: str = "",
    params: Optional[dict] = None,
    page_param: str = "page",
) -> PageMeta:
    last_page = page_count(total, per_page)
    # Out-of-range pages carry no rows
    has_rows = 1 <= page <= last_page
    first_row = (page - 1) * per_page + 1 if has_rows else None
    last_row = min(page * per_page, total) if has_rows else None

    links = [PageLink(
        url=_page_url(path, params, page - 1, page_param) if page > 1 else None,
        label="&laquo; Previous",
    )]
    for number in range(1, last_page + 1):
        links.append(PageLink(
            url=_page_url(path, params, number, page_param),
            label=str(number),
            active=number == page,
        ))
    links.append(PageLink(
        url=_page_url(path, params, page + 1, page_param) if page < last_page else None,
        label="Next &raquo;",
    ))

    return PageMeta(
        current_page=page,
        last_page=last_page,
        per_page=per_page,
        total=total,
        from_=first_row,
        to=last_row,
        links=links,
    )


async def paginate_query(
    db: AsyncSession,
    stmt: Select,
    page: int,
    per_page: int,
    path: str = "",
    params: Optional[dict] = None,
    page_param: str = "page",
) -> tuple[list, PageMeta]:
    """
    Count and slice a select statement.

    Returns the ORM objects on the requested page and the page metadata.
    """
    page = max(page, 1)
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.offset((page - 1) * per_page).limit(per_page))
    rows = list(result.scalars().unique().all())
    return rows, build_meta(total, page, per_page, path, params, page_param)
