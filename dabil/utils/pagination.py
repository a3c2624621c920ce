from typing import Dict, Any
from math import ceil


def paginate(total: int, limit: int, offset: int) -> Dict[str, Any]:
    """
    Pagination metadata for limit/offset listings
    """
    total_pages = ceil(total / limit) if limit > 0 else 0
    current_page = (offset // limit) + 1 if limit > 0 else 1

    return {
        "currentPage": current_page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNext": offset + limit < total,
        "hasPrev": offset > 0
    }
