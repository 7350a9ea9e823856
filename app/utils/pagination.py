# app/utils/pagination.py
"""
Page slicing for registry listings: 1-based page number, fixed page size,
plus the total so a client can render page links.
Works on a SQLAlchemy Query (COUNT + OFFSET/LIMIT) or an already filtered list.
"""

import math
from sqlalchemy.orm import Query
from app.utils.exceptions import ValidationError


def paginate(source, page: int = 1, page_size: int = 10) -> dict:
    if page < 1:
        raise ValidationError("Page must be 1 or greater", field="page")
    if page_size < 1:
        raise ValidationError("Page size must be 1 or greater", field="page_size")

    offset = (page - 1) * page_size
    if isinstance(source, Query):
        total = source.order_by(None).count()
        items = source.offset(offset).limit(page_size).all()
    else:
        total = len(source)
        items = list(source[offset:offset + page_size])

    total_pages = math.ceil(total / page_size)
    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_previous": page > 1,
        "has_next": page < total_pages,
    }
