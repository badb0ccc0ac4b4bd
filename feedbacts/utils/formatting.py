import math
from typing import Dict


def format_pagination(total: int, page: int, limit: int) -> Dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def iso(value):
    """datetime/date/time -> ISO string, None stays None."""
    return value.isoformat() if value is not None else None
