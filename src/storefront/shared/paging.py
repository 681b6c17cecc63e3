"""Pagination helpers over Protean query sets."""

import math

_BATCH = 100


def clamp_page(page, limit, default_limit, max_limit=100):
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else default_limit
    return page, min(limit, max_limit)


def pagination(page, limit, total):
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if limit else 0}


def fetch_all(query):
    """Read every match, a batch at a time. A bare ``.all()`` stops at the default limit."""
    items = []
    offset = 0
    while True:
        batch = query.offset(offset).limit(_BATCH).all().items
        items.extend(batch)
        if len(batch) < _BATCH:
            return items
        offset += _BATCH
