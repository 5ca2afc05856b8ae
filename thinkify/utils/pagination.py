"""
Offset pagination for list queries (the admin user directory).
"""
from math import ceil
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

MAX_PAGE_SIZE = 100


def clamp_page(page: int, page_size: int) -> Tuple[int, int]:
    """1-indexed page, size between 1 and MAX_PAGE_SIZE"""
    return max(1, page), min(MAX_PAGE_SIZE, max(1, page_size))


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: int = 10,
    count_query: Optional[Select] = None,
) -> Dict[str, Any]:
    """
    Run one page of ``query``.

    The total comes from ``count_query`` or, by default, a COUNT over the
    unordered query. An empty result still reports one page.
    """
    page, page_size = clamp_page(page, page_size)
    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())

    total = (await db.execute(count_query)).scalar() or 0
    pages = max(1, ceil(total / page_size))
    rows = await db.execute(query.offset((page - 1) * page_size).limit(page_size))

    return {
        "items": rows.scalars().all(),
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": pages,
        "has_next": page < pages,
        "has_previous": page > 1,
    }
