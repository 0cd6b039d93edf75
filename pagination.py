import math
from typing import Any, Iterable, Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query


def apply_sorting(
    query: Query,
    model,
    sort_by: Optional[str],
    sort_order: str,
    allowed: Iterable[str],
    default: str,
) -> Query:
    """Сортировка по белому списку полей, неизвестное поле заменяется default"""
    allowed = tuple(allowed)
    field = sort_by if sort_by in allowed else default
    direction = desc if sort_order.lower() == "desc" else asc
    return query.order_by(direction(getattr(model, field)))


def paginate(query: Query, page: int, limit: int, serialize=None) -> dict[str, Any]:
    page = max(page, 1)
    limit = max(limit, 1)
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()

    if serialize is not None:
        items = [serialize(item) for item in items]

    return {
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
        },
    }
