from urllib.parse import parse_qs, urlparse

import pytest

from gateway.common.pagination import MAX_LIMIT, PageRequest, build_pagination_links
from gateway.core.database import get_dialect

BASE = "http://test/api/inventario"


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (0, 10, (1, 10)),
        (-3, 10, (1, 10)),
        (2, 0, (2, 1)),
        (1, 5000, (1, MAX_LIMIT)),
        (3, 50, (3, 50)),
    ],
)
def test_page_request_is_clamped(page, limit, expected):
    request = PageRequest.clamped(page, limit)
    assert (request.page, request.limit) == expected


def test_offset():
    assert PageRequest(page=1, limit=50).offset == 0
    assert PageRequest(page=4, limit=50).offset == 150


def test_links_echo_filters_and_adjust_page():
    next_link, prev_link = build_pagination_links(
        BASE, page=2, limit=10, total=35, query_items=[("ciudad", "OCANA"), ("page", "2"), ("limit", "10")]
    )
    next_query = parse_qs(urlparse(next_link).query)
    prev_query = parse_qs(urlparse(prev_link).query)
    assert next_link.startswith(BASE + "?")
    assert next_query == {"ciudad": ["OCANA"], "limit": ["10"], "page": ["3"]}
    assert prev_query == {"ciudad": ["OCANA"], "limit": ["10"], "page": ["1"]}


def test_links_use_the_effective_limit():
    next_link, _ = build_pagination_links(BASE, page=1, limit=1000, total=5000, query_items=[("limit", "99999")])
    assert parse_qs(urlparse(next_link).query)["limit"] == ["1000"]


@pytest.mark.parametrize(
    "page, limit, total, has_next, has_prev",
    [
        (1, 10, 0, False, False),
        (1, 10, 10, False, False),
        (1, 10, 11, True, False),
        (2, 10, 11, False, True),
        (5, 10, 11, False, True),
    ],
)
def test_next_is_null_iff_page_times_limit_reaches_total(page, limit, total, has_next, has_prev):
    next_link, prev_link = build_pagination_links(BASE, page, limit, total, [])
    assert (next_link is not None) == has_next
    assert (prev_link is not None) == has_prev


def test_following_next_visits_every_row_once():
    total, limit = 23, 5
    rows = list(range(total))
    seen = []
    page = 1
    while True:
        offset = PageRequest(page, limit).offset
        seen.extend(rows[offset:offset + limit])
        next_link, _ = build_pagination_links(BASE, page, limit, total, [("empresa", "CBB")])
        if next_link is None:
            break
        page = int(parse_qs(urlparse(next_link).query)["page"][0])
    assert seen == rows


def test_dialect_pagination_is_bound():
    assert get_dialect("mssql").paginate(20, 10) == ("OFFSET ? ROWS FETCH NEXT ? ROWS ONLY", [20, 10])
    assert get_dialect("mysql").paginate(20, 10) == ("LIMIT %s OFFSET %s", [10, 20])
    assert get_dialect("sqlite").paginate(0, 5) == ("LIMIT ? OFFSET ?", [5, 0])
