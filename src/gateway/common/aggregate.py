"""The page + count + summary pattern used by every reporting endpoint.

All three statements share one predicate and run concurrently. If any of them
fails the whole request fails; partial pages are never returned.
"""
import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..core.database import Database
from .pagination import PageRequest
from .query import Predicate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PagedQuery:
    """Pieces of a paged report query.

    ``source`` is everything from ``FROM`` up to (not including) the WHERE
    clause; the predicate is inserted after it.
    """

    select: str
    source: str
    order_by: str
    summary: Optional[str] = None
    group_by: Optional[str] = None


@dataclass
class PagedResult:
    rows: List[Dict[str, Any]]
    total: int
    summary: Dict[str, Any]


def to_number(value: Any) -> float:
    """Aggregates over no rows come back as NULL; report them as 0."""
    if value is None:
        return 0
    if isinstance(value, Decimal):
        return float(value)
    return value


def coerce_summary(row: Optional[Mapping[str, Any]], fields: Sequence[str]) -> Dict[str, Any]:
    row = row or {}
    return {name: to_number(row.get(name)) for name in fields}


def build_statements(db: Database, query: PagedQuery, predicate: Predicate, page_request: PageRequest):
    where = predicate.sql
    group_by = f"GROUP BY {query.group_by}" if query.group_by else ""
    pagination_sql, pagination_params = db.dialect.paginate(page_request.offset, page_request.limit)

    page_sql = (
        f"SELECT {query.select} {query.source} {where} {group_by} "
        f"ORDER BY {query.order_by} {pagination_sql}"
    )
    if query.group_by:
        count_sql = (
            f"SELECT COUNT(*) AS total FROM "
            f"(SELECT 1 AS grp {query.source} {where} {group_by}) grouped"
        )
    else:
        count_sql = f"SELECT COUNT(*) AS total {query.source} {where}"
    summary_sql = f"SELECT {query.summary} {query.source} {where}" if query.summary else None

    return (
        (page_sql, predicate.params + pagination_params),
        (count_sql, list(predicate.params)),
        (summary_sql, list(predicate.params)) if summary_sql else None,
    )


async def run_paged_query(
    db: Database,
    query: PagedQuery,
    predicate: Predicate,
    page_request: PageRequest,
) -> PagedResult:
    page, count, summary = build_statements(db, query, predicate, page_request)

    statements = [db.fetch_all(*page), db.fetch_one(*count)]
    if summary:
        statements.append(db.fetch_one(*summary))
    results = await asyncio.gather(*statements)

    rows, count_row = results[0], results[1]
    summary_row = results[2] if summary else None
    total = int(to_number((count_row or {}).get("total")))
    logger.debug(f"{db.alias}: page {page_request.page} ({len(rows)} rows) of {total}")
    return PagedResult(rows=rows, total=total, summary=dict(summary_row or {}))
