from __future__ import annotations

from typing import Any, Callable, Dict, Sequence, TypeVar

T = TypeVar("T")


# PUBLIC_INTERFACE
def paginate(
    items: Sequence[T],
    limit: int,
    offset: int,
    serialize: Callable[[T], Any],
) -> Dict[str, Any]:
    """
    Slice an already filtered and sorted sequence into a pagination envelope.

    Args:
        items: Every item matching the query, in final order.
        limit: Maximum number of items on the page (negative values count as 0).
        offset: Number of items to skip (negative values count as 0).
        serialize: Applied to each item on the page.

    Returns:
        Dict with keys: items, total, limit, offset.
    """
    start = max(offset, 0)
    size = max(limit, 0)
    return {
        "items": [serialize(item) for item in items[start:start + size]],
        "total": len(items),
        "limit": size,
        "offset": start,
    }
