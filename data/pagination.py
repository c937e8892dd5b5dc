"""Page slicing for list endpoints."""
import math
from typing import Any, Dict, List, Sequence


def paginate(items: Sequence[Any], page: int, page_size: int) -> Dict[str, Any]:
    """Slice ``items`` to one 1-based page.

    Returns:
        ``{"data": [...], "pagination": {current, total, total_items, has_next, has_prev}}``
    """
    page = max(1, page)
    start = (page - 1) * page_size
    total_items = len(items)
    return {
        "data": list(items[start:start + page_size]),
        "pagination": {
            "current": page,
            "total": math.ceil(total_items / page_size) if page_size else 1,
            "total_items": total_items,
            "has_next": start + page_size < total_items,
            "has_prev": page > 1,
        },
    }


def single_page(items: Sequence[Any]) -> Dict[str, Any]:
    """Everything on one page (``fetch_all`` requests)."""
    data: List[Any] = list(items)
    return {
        "data": data,
        "pagination": {
            "current": 1,
            "total": 1,
            "total_items": len(data),
            "has_next": False,
            "has_prev": False,
        },
    }
