from dataclasses import dataclass
from typing import List, Mapping, Tuple

from flask import current_app


@dataclass(frozen=True)
class Page:
    items: List
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    def meta(self) -> dict:
        return dict(page=self.page, limit=self.limit, total=self.total, total_pages=self.total_pages)


def page_args(args: Mapping) -> Tuple[int, int]:
    """?page=&limit= with sane clamping; bad values fall back to defaults."""
    default = int(current_app.config.get("PAGE_SIZE_DEFAULT", 10))
    cap = int(current_app.config.get("PAGE_SIZE_MAX", 100))
    try:
        page = max(1, int(args.get("page") or 1))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(args.get("limit") or default)
    except (TypeError, ValueError):
        limit = default
    return page, max(1, min(cap, limit))


def paginate(query, page: int, limit: int) -> Page:
    total = query.order_by(None).count()
    items = query.limit(limit).offset((page - 1) * limit).all()
    return Page(items=items, total=total, page=page, limit=limit)
