"""
Offset pagination shared by the list, contact and member listings.

A page is a plain dict so routers can swap the ORM rows for response
schemas before FastAPI validates the body.
"""
from typing import Any, Dict, List

from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession


def page_count(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return -(-total // limit)


def build_page(items: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    pages = page_count(total, limit)
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": pages,
        "has_next": page < pages,
        "has_prev": page > 1,
    }


async def paginate_query(
    session: AsyncSession,
    query,
    page: int = 1,
    limit: int = 10
) -> Dict[str, Any]:
    """
    Run `query` for one page.

    The total counts every row matching the filters; ordering is dropped
    from the count. Pages below 1 are treated as the first page, pages past
    the end come back empty.
    """
    page = max(page, 1)

    counted = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.exec(counted)).one()

    rows = await session.exec(query.offset((page - 1) * limit).limit(limit))

    return build_page(list(rows.all()), total, page, limit)
