# app/query.py
"""Filtering, sorting and pagination of listings.

A `ListingQuery` is evaluated one of two ways: `query_fixtures` scans an
in-memory list of listing dicts, while `ListingQueryBuilder` turns the same
query into a count statement and a page statement for the database. Both
order ties by ascending id so the two paths return the same sequence, and
both results are wrapped by `build_page`.
"""
import math
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy import Select, asc, desc, func, or_, select
from sqlalchemy.orm import joinedload, selectinload

from .models import Category, Listing, ListingKeyword, ListingStatus
from .schemas import ListingOut, ListingPage, Pagination

SORT_KEYS = ("price", "name", "created_at", "traffic", "featured")
SORT_ORDERS = ("asc", "desc")
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
ALL_CATEGORIES = "all"

# sort key -> listing field
_SORT_FIELDS = {
    "price": "price",
    "name": "name",
    "created_at": "created_at",
    "traffic": "traffic_monthly",
}

_SORT_COLUMNS = {
    "price": Listing.price,
    "name": Listing.name,
    "created_at": Listing.created_at,
    "traffic": Listing.traffic_monthly,
}


@dataclass(frozen=True)
class ListingQuery:
    page: int = 1
    limit: int = DEFAULT_LIMIT
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    search: Optional[str] = None
    featured: Optional[bool] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"

    def normalized(self) -> "ListingQuery":
        """Clamp page to >= 1 and limit to [1, MAX_LIMIT]."""
        return replace(self, page=max(int(self.page), 1),
                       limit=min(max(int(self.limit), 1), MAX_LIMIT))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def category_slug(self) -> Optional[str]:
        if self.category and self.category != ALL_CATEGORIES:
            return self.category
        return None


# ---------------------------------------------------------------------------
# in-memory evaluation
# ---------------------------------------------------------------------------

def _matches(item: dict, query: ListingQuery) -> bool:
    if item.get("status", ListingStatus.active.value) != ListingStatus.active.value:
        return False
    slug = query.category_slug
    if slug is not None and item.get("category_slug") != slug:
        return False
    if query.min_price is not None and item["price"] < query.min_price:
        return False
    if query.max_price is not None and item["price"] > query.max_price:
        return False
    if query.featured and not item.get("is_featured"):
        return False
    if query.search:
        term = query.search.lower()
        fields = [item.get("name") or "", item.get("description") or ""]
        fields.extend(item.get("keywords") or [])
        if not any(term in f.lower() for f in fields):
            return False
    return True


def _sort_nulls_last(items: List[dict], field: str, descending: bool) -> List[dict]:
    present = [i for i in items if i.get(field) is not None]
    missing = [i for i in items if i.get(field) is None]
    present.sort(key=lambda i: i[field], reverse=descending)
    return present + missing


def sort_items(items: Iterable[dict], sort_by: str, sort_order: str) -> List[dict]:
    """Return a new list ordered the way `order_by_clauses` orders rows."""
    descending = sort_order == "desc"
    ordered = sorted(items, key=lambda i: i["id"])
    if sort_by == "featured":
        ordered = _sort_nulls_last(ordered, "created_at", True)
        ordered.sort(key=lambda i: bool(i.get("is_featured")), reverse=descending)
        return ordered
    return _sort_nulls_last(ordered, _SORT_FIELDS.get(sort_by, "created_at"), descending)


def query_fixtures(source: Sequence[dict], query: ListingQuery) -> Tuple[List[dict], int]:
    """Filter, sort and slice `source`; returns (page items, filtered total)."""
    q = query.normalized()
    matched = [item for item in source if _matches(item, q)]
    ordered = sort_items(matched, q.sort_by, q.sort_order)
    return ordered[q.offset:q.offset + q.limit], len(ordered)


# ---------------------------------------------------------------------------
# database evaluation
# ---------------------------------------------------------------------------

def like_pattern(term: str) -> str:
    """Wrap `term` for a contains-match, escaping LIKE wildcards."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def order_by_clauses(sort_by: str, sort_order: str) -> list:
    direction = desc if sort_order == "desc" else asc
    if sort_by == "featured":
        return [direction(Listing.is_featured), desc(Listing.created_at).nulls_last(), Listing.id.asc()]
    column = _SORT_COLUMNS.get(sort_by, Listing.created_at)
    return [direction(column).nulls_last(), Listing.id.asc()]


def _search_clause(pattern):
    return or_(
        Listing.name.ilike(pattern, escape="\\"),
        Listing.description.ilike(pattern, escape="\\"),
        Listing.keyword_rows.any(ListingKeyword.keyword.ilike(pattern, escape="\\")),
    )


class Predicate(NamedTuple):
    build: Callable[[Any], Any]
    value: Any

    @property
    def clause(self):
        return self.build(self.value)


class ListingQueryBuilder:
    """Collects WHERE predicates as (clause template, value) pairs.

    Each clause is built from its stored value when a statement is
    assembled. The predicate list is shared by `count_statement` and
    `page_statement`, so the total always counts exactly the rows the page
    is cut from.
    """

    def __init__(self):
        self.predicates: List[Predicate] = []

    def where(self, build: Callable[[Any], Any], value) -> "ListingQueryBuilder":
        self.predicates.append(Predicate(build, value))
        return self

    @classmethod
    def from_query(cls, query: ListingQuery) -> "ListingQueryBuilder":
        builder = cls().where(lambda v: Listing.status == v, ListingStatus.active.value)
        slug = query.category_slug
        if slug is not None:
            builder.where(lambda v: Listing.category.has(Category.slug == v), slug)
        if query.min_price is not None:
            builder.where(lambda v: Listing.price >= v, query.min_price)
        if query.max_price is not None:
            builder.where(lambda v: Listing.price <= v, query.max_price)
        if query.search:
            builder.where(_search_clause, like_pattern(query.search))
        if query.featured:
            builder.where(lambda v: Listing.is_featured.is_(v), True)
        return builder

    @property
    def clauses(self) -> list:
        return [p.clause for p in self.predicates]

    @property
    def params(self) -> list:
        return [p.value for p in self.predicates]

    def count_statement(self) -> Select:
        return select(func.count(Listing.id)).where(*self.clauses)

    def page_statement(self, query: ListingQuery) -> Select:
        return (
            select(Listing)
            .where(*self.clauses)
            .order_by(*order_by_clauses(query.sort_by, query.sort_order))
            .offset(query.offset)
            .limit(query.limit)
            .options(
                joinedload(Listing.category),
                joinedload(Listing.seller),
                joinedload(Listing.analytics),
                selectinload(Listing.keyword_rows),
            )
        )


# ---------------------------------------------------------------------------
# response envelope
# ---------------------------------------------------------------------------

def build_page(items: Sequence[ListingOut], total: int, page: int, limit: int) -> ListingPage:
    total_pages = math.ceil(total / limit)
    return ListingPage(
        items=list(items),
        pagination=Pagination(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
    )
