from __future__ import annotations

import math
from typing import Any, Sequence, TypeVar

T = TypeVar("T")


def paginate(items: Sequence[T], page: int, page_size: int) -> dict[str, Any]:
    """Slice an already-materialized sequence into one page.

    A page past the end yields an empty item list rather than an error.
    """
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be >= 1")
    total = len(items)
    start = (page - 1) * page_size
    return {
        "items": list(items[start:start + page_size]),
        "totalItems": total,
        "totalPages": math.ceil(total / page_size),
        "currentPage": page,
        "itemsPerPage": page_size,
    }
