"""
Offset pagination over a filtered SQLAlchemy query.
"""
import math
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.orm import Query


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    """Page metadata for ``total`` items split into pages of ``limit``."""
    total_pages = math.ceil(total / limit) if total > 0 else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def paginate(
    query: Query,
    page: int,
    limit: int,
    order_by: Optional[Iterable[Any]] = None,
    options: Optional[Iterable[Any]] = None,
) -> Dict[str, Any]:
    """
    Count and fetch one page of ``query``.

    The query must already carry its filter predicate; the count and the page
    fetch both run against it. Pages past the end come back empty with
    accurate metadata, they are not clamped.
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be >= 1")

    total = query.order_by(None).count()

    if order_by is not None:
        query = query.order_by(*order_by)
    if options:
        query = query.options(*options)

    records = query.offset((page - 1) * limit).limit(limit).all()

    return {
        "data": records,
        "pagination": build_pagination(page, limit, total),
    }
