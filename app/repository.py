# app/repository.py
"""Listing data sources behind one read/write contract.

`select_repository` is called once at startup. When the database answered
the startup probe every request goes to `SqlListingRepository`; otherwise
every request is served from `FixtureListingRepository`. Query failures in
database mode propagate to the caller and never switch the source.
"""
import copy
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from . import crud, fixtures
from .db import SessionLocal, store_available
from .models import ListingStatus
from .query import ListingQuery, build_page, query_fixtures
from .schemas import CategoryOut, ListingCreate, ListingOut, ListingPage, MarketStats
from .services import (DuplicateListing, ListingNotFound, UnknownCategory, UnknownSeller,
                       check_transition, initial_status, normalize_new_listing)
from .utils import logger

FEATURED_LIMIT = 6


class ListingRepository(ABC):
    source = "unknown"

    def __init__(self, moderation: bool = False):
        self.moderation = moderation

    @abstractmethod
    def list_listings(self, query: ListingQuery) -> ListingPage:
        """Return one page of active listings matching `query`."""

    def featured(self, limit: int = FEATURED_LIMIT) -> List[ListingOut]:
        return self.list_listings(ListingQuery(featured=True, limit=limit)).items

    @abstractmethod
    def view_listing(self, listing_id: int) -> ListingOut:
        """Fetch an active listing, counting the fetch as a view."""

    @abstractmethod
    def create_listing(self, payload: ListingCreate) -> ListingOut:
        ...

    @abstractmethod
    def update_status(self, listing_id: int, status: ListingStatus) -> ListingOut:
        ...

    @abstractmethod
    def categories(self) -> List[CategoryOut]:
        ...

    @abstractmethod
    def stats(self) -> MarketStats:
        ...


class SqlListingRepository(ListingRepository):
    source = "database"

    def __init__(self, session_factory: sessionmaker, moderation: bool = False):
        super().__init__(moderation)
        self._session_factory = session_factory

    def list_listings(self, query: ListingQuery) -> ListingPage:
        with self._session_factory() as db:
            # count and page share one transaction
            with db.begin():
                return crud.list_listings(db, query)

    def view_listing(self, listing_id: int) -> ListingOut:
        with self._session_factory() as db:
            return crud.record_view(db, listing_id)

    def create_listing(self, payload: ListingCreate) -> ListingOut:
        with self._session_factory() as db:
            return crud.create_listing(db, payload, initial_status(self.moderation))

    def update_status(self, listing_id: int, status: ListingStatus) -> ListingOut:
        with self._session_factory() as db:
            return crud.update_status(db, listing_id, status)

    def categories(self) -> List[CategoryOut]:
        with self._session_factory() as db:
            return crud.list_categories(db)

    def stats(self) -> MarketStats:
        with self._session_factory() as db:
            return crud.market_stats(db)


class FixtureListingRepository(ListingRepository):
    """In-memory catalogue. Writes are kept for the life of the process only."""

    source = "fixtures"

    def __init__(self, categories: List[Dict], sellers: List[Dict], listings: List[Dict],
                 moderation: bool = False):
        super().__init__(moderation)
        self._categories = {c["id"]: dict(c) for c in categories}
        self._sellers = {s["id"]: dict(s) for s in sellers}
        self._listings = copy.deepcopy(listings)
        self._lock = threading.Lock()

    def _joined(self, item: Dict) -> Dict:
        row = dict(item)
        category = self._categories.get(item.get("category_id"))
        seller = self._sellers.get(item.get("seller_id"))
        row["category"] = category["name"] if category else None
        row["category_slug"] = category["slug"] if category else None
        row["seller_name"] = f"{seller['first_name']} {seller['last_name']}".strip() if seller else None
        row["seller_company"] = seller.get("company") if seller else None
        return row

    def _find(self, listing_id: int) -> Optional[Dict]:
        for item in self._listings:
            if item["id"] == listing_id:
                return item
        return None

    def list_listings(self, query: ListingQuery) -> ListingPage:
        q = query.normalized()
        rows = [self._joined(item) for item in self._listings]
        items, total = query_fixtures(rows, q)
        return build_page([ListingOut(**i) for i in items], total, q.page, q.limit)

    def view_listing(self, listing_id: int) -> ListingOut:
        with self._lock:
            item = self._find(listing_id)
            if item is None or item.get("status") != ListingStatus.active.value:
                raise ListingNotFound(listing_id)
            item["views_count"] = item.get("views_count", 0) + 1
            return ListingOut(**self._joined(item))

    def create_listing(self, payload: ListingCreate) -> ListingOut:
        data = normalize_new_listing(payload)
        if data["category_id"] not in self._categories:
            raise UnknownCategory(data["category_id"])
        if data["seller_id"] is not None and data["seller_id"] not in self._sellers:
            raise UnknownSeller(data["seller_id"])
        status = initial_status(self.moderation)
        with self._lock:
            if any(i["name"] == data["name"] for i in self._listings):
                raise DuplicateListing(data["name"])
            item = dict(
                data,
                id=max((i["id"] for i in self._listings), default=0) + 1,
                is_featured=False,
                seo_score=None,
                backlinks_count=None,
                status=status.value,
                created_at=datetime.now(timezone.utc),
                views_count=0,
                inquiries_count=0,
            )
            self._listings.append(item)
        logger.info("Created fixture listing %s (%s) as %s", item["id"], item["name"], status.value)
        return ListingOut(**self._joined(item))

    def update_status(self, listing_id: int, status: ListingStatus) -> ListingOut:
        with self._lock:
            item = self._find(listing_id)
            if item is None:
                raise ListingNotFound(listing_id)
            item["status"] = check_transition(item["status"], status).value
            return ListingOut(**self._joined(item))

    def categories(self) -> List[CategoryOut]:
        counts: Dict[int, int] = {}
        for item in self._listings:
            if item.get("status") == ListingStatus.active.value:
                counts[item["category_id"]] = counts.get(item["category_id"], 0) + 1
        ordered = sorted(self._categories.values(), key=lambda c: (c["name"], c["id"]))
        return [CategoryOut(**c, listing_count=counts.get(c["id"], 0)) for c in ordered]

    def stats(self) -> MarketStats:
        active = [i["price"] for i in self._listings if i.get("status") == ListingStatus.active.value]
        sold = [i["price"] for i in self._listings if i.get("status") == ListingStatus.sold.value]
        return MarketStats(
            active_listings=len(active),
            sold_listings=len(sold),
            total_sales_value=float(sum(sold)),
            average_price=float(sum(active) / len(active)) if active else 0.0,
        )


def select_repository(moderation: bool = False) -> ListingRepository:
    if store_available():
        repo = SqlListingRepository(SessionLocal, moderation=moderation)
    else:
        repo = FixtureListingRepository(fixtures.CATEGORIES, fixtures.SELLERS, fixtures.LISTINGS,
                                        moderation=moderation)
    logger.info("Serving listings from %s", repo.source)
    return repo
