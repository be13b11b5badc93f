# tests/test_crud.py
import pytest

from app import crud, fixtures
from app.models import Listing, ListingStatus
from app.query import ListingQuery
from app.schemas import ListingCreate
from app.services import (DuplicateListing, InvalidStatusTransition, ListingNotFound,
                          UnknownCategory, UnknownSeller)


def _payload(**overrides):
    data = {
        "name": "GreenEnergy.com",
        "price": 9900,
        "category_id": 1,
        "description": "Clean energy brand for solar startups.",
        "traffic_monthly": 120,
        "keywords": ["energy", " solar ", ""],
        "seller_id": 1,
    }
    data.update(overrides)
    return ListingCreate(**data)


def test_list_listings_joins_category_seller_and_counters(db):
    page = crud.list_listings(db, ListingQuery(sort_by="price", sort_order="asc"))
    assert [i.price for i in page.items] == [8500, 12000, 15000]
    first = page.items[0]
    assert first.category == "Finance"
    assert first.category_slug == "finance"
    assert first.seller_name == "Sarah Johnson"
    assert first.seller_company == "FinDomains LLC"
    assert first.keywords == ["finance", "fintech", "smart"]
    assert first.views_count == 189


def test_list_listings_search_keyword(db):
    page = crud.list_listings(db, ListingQuery(search="FINTECH"))
    assert [i.name for i in page.items] == ["smartfinance.io"]


def test_record_view_increments_every_fetch(db):
    assert crud.record_view(db, 1).views_count == 246
    assert crud.record_view(db, 1).views_count == 247


def test_record_view_missing(db):
    with pytest.raises(ListingNotFound):
        crud.record_view(db, 999)


def test_create_listing(db):
    out = crud.create_listing(db, _payload(), ListingStatus.active)
    assert out.id == 4
    assert out.name == "greenenergy.com"
    assert out.keywords == ["energy", "solar"]
    assert out.status == ListingStatus.active
    assert out.category_slug == "technology"
    assert out.views_count == 0
    assert out.created_at is not None
    assert db.get(Listing, out.id) is not None


def test_create_listing_duplicate_name(db):
    with pytest.raises(DuplicateListing):
        crud.create_listing(db, _payload(name="AITech.com"), ListingStatus.active)


def test_create_listing_unknown_references(db):
    with pytest.raises(UnknownCategory):
        crud.create_listing(db, _payload(category_id=42), ListingStatus.active)
    with pytest.raises(UnknownSeller):
        crud.create_listing(db, _payload(seller_id=42), ListingStatus.active)


def test_pending_listing_is_not_listed(db):
    crud.create_listing(db, _payload(), ListingStatus.pending)
    page = crud.list_listings(db, ListingQuery())
    assert page.pagination.total_items == 3


def test_update_status_transitions(db):
    out = crud.update_status(db, 3, ListingStatus.pending)
    assert out.status == ListingStatus.pending
    assert crud.get_listing(db, 3) is None
    out = crud.update_status(db, 3, ListingStatus.active)
    assert out.status == ListingStatus.active
    crud.update_status(db, 3, ListingStatus.sold)
    with pytest.raises(InvalidStatusTransition):
        crud.update_status(db, 3, ListingStatus.active)


def test_update_status_missing(db):
    with pytest.raises(ListingNotFound):
        crud.update_status(db, 404, ListingStatus.sold)


def test_list_categories_counts_active_listings(db):
    crud.update_status(db, 2, ListingStatus.sold)
    cats = {c.slug: c.listing_count for c in crud.list_categories(db)}
    assert cats == {"technology": 1, "finance": 0, "healthcare": 1, "ecommerce": 0, "education": 0}
    names = [c.name for c in crud.list_categories(db)]
    assert names == sorted(names)


def test_market_stats(db):
    crud.update_status(db, 1, ListingStatus.sold)
    stats = crud.market_stats(db)
    assert stats.active_listings == 2
    assert stats.sold_listings == 1
    assert stats.total_sales_value == 15000
    assert stats.average_price == pytest.approx((8500 + 12000) / 2)


def test_seed_catalogue_is_idempotent(db):
    crud.seed_catalogue(db, fixtures.CATEGORIES, fixtures.SELLERS, fixtures.LISTINGS)
    page = crud.list_listings(db, ListingQuery())
    assert page.pagination.total_items == 3
    assert page.items[0].keywords == ["finance", "fintech", "smart"]


def test_update_status_rejects_change_made_since_read(db, session_factory, monkeypatch):
    real_check = crud.check_transition

    def sold_elsewhere(current, requested):
        # another request sells the listing after this one read it
        with session_factory() as other:
            other.get(Listing, 1).status = ListingStatus.sold.value
            other.commit()
        return real_check(current, requested)

    monkeypatch.setattr(crud, "check_transition", sold_elsewhere)
    with pytest.raises(InvalidStatusTransition) as exc:
        crud.update_status(db, 1, ListingStatus.pending)
    assert exc.value.current == "sold"
    db.expire_all()
    assert db.get(Listing, 1).status == "sold"


def test_create_listing_keeps_two_decimal_price(db):
    out = crud.create_listing(db, _payload(price="1234.50"), ListingStatus.active)
    assert out.price == 1234.5


def test_timestamps_come_back_in_utc(db):
    page = crud.list_listings(db, ListingQuery())
    created = page.items[0].created_at
    assert created.tzinfo is not None
    assert created.utcoffset().total_seconds() == 0
    assert created == fixtures.LISTINGS[1]["created_at"]
