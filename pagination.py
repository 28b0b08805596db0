import math
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

MAX_LIMIT = 100


def clamp_page_params(page: Optional[int], limit: Optional[int], default_limit: int = 15) -> Tuple[int, int]:
    page = max(page or 1, 1)
    limit = min(max(limit if limit is not None else default_limit, 1), MAX_LIMIT)
    return page, limit


def exact_ci(value: str) -> Dict[str, str]:
    """Case-insensitive whole-string match."""
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


def contains_ci(value: str) -> Dict[str, str]:
    return {"$regex": re.escape(value), "$options": "i"}


def page_metadata(total: int, page: int, limit: int) -> Dict[str, Any]:
    total_pages = max(1, math.ceil(total / limit))
    page = min(page, total_pages)
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def paginate(
    collection,
    filter_q: Dict[str, Any],
    page: Optional[int],
    limit: Optional[int],
    sort: Optional[Sequence[Tuple[str, int]]] = None,
    projection: Optional[Dict[str, int]] = None,
    transform: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
    default_limit: int = 15,
) -> Dict[str, Any]:
    """Run ``filter_q`` against ``collection`` and return one page of results.

    The requested page is clamped to ``[1, totalPages]`` so that a page past
    the end returns the last page instead of an empty slice.
    """
    page, limit = clamp_page_params(page, limit, default_limit)
    total = collection.count_documents(filter_q)
    meta = page_metadata(total, page, limit)

    cursor = collection.find(filter_q, projection)
    if sort:
        cursor = cursor.sort(list(sort))
    cursor = cursor.skip((meta["page"] - 1) * limit).limit(limit)

    docs: List[Dict[str, Any]] = [transform(d) if transform else d for d in cursor]
    return {"data": docs, "pagination": meta}
