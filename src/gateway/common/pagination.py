"""Page/limit handling and navigation links.

``limit`` is clamped to [1, MAX_LIMIT] and ``page`` to >= 1 rather than
rejected. ``next``/``prev`` links repeat every query parameter the caller sent
so that following ``next`` from page 1 walks the whole filtered result set.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
from urllib.parse import urlencode

from fastapi import Query, Request

MAX_LIMIT = 1000
DEFAULT_LIMIT = 100


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def clamped(cls, page: int, limit: int) -> "PageRequest":
        return cls(page=max(1, page), limit=min(max(1, limit), MAX_LIMIT))


def pagination_params(default_limit: int = DEFAULT_LIMIT):
    """FastAPI dependency factory for ``page``/``limit`` query parameters.

    Usage:
        page_request: PageRequest = Depends(pagination_params(1000))
    """

    def _dependency(
        page: int = Query(1, description="Page number (1-indexed)"),
        limit: int = Query(default_limit, description=f"Rows per page (clamped to 1..{MAX_LIMIT})"),
    ) -> PageRequest:
        return PageRequest.clamped(page, limit)

    return _dependency


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool
    next: Optional[str]
    prev: Optional[str]


def build_pagination_links(
    base_url: str,
    page: int,
    limit: int,
    total: int,
    query_items: Iterable[Tuple[str, str]],
) -> Tuple[Optional[str], Optional[str]]:
    echoed = [(key, value) for key, value in query_items if key not in ("page", "limit")]
    echoed.append(("limit", str(limit)))

    def _link(target_page: int) -> str:
        return f"{base_url}?{urlencode(echoed + [('page', str(target_page))])}"

    next_link = None if page * limit >= total else _link(page + 1)
    prev_link = None if page <= 1 else _link(page - 1)
    return next_link, prev_link


def paginate(page_request: PageRequest, total: int, request: Request) -> PaginationMeta:
    base_url = str(request.url.replace(query="", fragment=""))
    next_link, prev_link = build_pagination_links(
        base_url,
        page_request.page,
        page_request.limit,
        total,
        request.query_params.multi_items(),
    )
    return PaginationMeta(
        page=page_request.page,
        limit=page_request.limit,
        total=total,
        total_pages=math.ceil(total / page_request.limit),
        has_next=next_link is not None,
        has_prev=page_request.page > 1,
        next=next_link,
        prev=prev_link,
    )
