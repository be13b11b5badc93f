# app/crud.py
"""Database operations for listings, categories and marketplace stats.

Every function takes an open `Session`; results are converted to response
schemas before they are returned so callers never touch lazy ORM state.
"""
from typing import Dict, Any, List, Optional

from sqlalchemy import select, func, update, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from .models import (Category, Listing, ListingAnalytics, ListingKeyword, ListingStatus,
                     Seller)
from .query import ListingQuery, ListingQueryBuilder, build_page
from .schemas import CategoryOut, ListingCreate, ListingOut, ListingPage, MarketStats
from .services import (DuplicateListing, InvalidStatusTransition, ListingNotFound, UnknownCategory,
                       UnknownSeller, check_transition, normalize_new_listing)
from .utils import logger


def listing_to_out(obj: Listing) -> ListingOut:
    analytics = obj.analytics
    return ListingOut(
        id=obj.id,
        name=obj.name,
        price=float(obj.price),
        description=obj.description,
        category=obj.category.name if obj.category else None,
        category_slug=obj.category.slug if obj.category else None,
        is_featured=bool(obj.is_featured),
        traffic_monthly=obj.traffic_monthly,
        domain_age_years=obj.domain_age_years,
        seo_score=obj.seo_score,
        backlinks_count=obj.backlinks_count,
        keywords=obj.keywords,
        status=obj.status,
        created_at=obj.created_at,
        seller_name=obj.seller.display_name if obj.seller else None,
        seller_company=obj.seller.company if obj.seller else None,
        views_count=analytics.views_count if analytics else 0,
        inquiries_count=analytics.inquiries_count if analytics else 0,
    )


def list_listings(db: Session, query: ListingQuery) -> ListingPage:
    q = query.normalized()
    builder = ListingQueryBuilder.from_query(q)
    total = db.execute(builder.count_statement()).scalar_one()
    rows = db.execute(builder.page_statement(q)).unique().scalars().all()
    return build_page([listing_to_out(r) for r in rows], total, q.page, q.limit)


def get_listing(db: Session, listing_id: int, active_only: bool = True) -> Optional[Listing]:
    stmt = (
        select(Listing)
        .where(Listing.id == listing_id)
        .options(joinedload(Listing.category), joinedload(Listing.seller),
                 joinedload(Listing.analytics), selectinload(Listing.keyword_rows))
    )
    if active_only:
        stmt = stmt.where(Listing.status == ListingStatus.active.value)
    return db.execute(stmt).unique().scalar_one_or_none()


def record_view(db: Session, listing_id: int) -> ListingOut:
    """Count a view of an active listing and return it with the new count."""
    if get_listing(db, listing_id) is None:
        raise ListingNotFound(listing_id)
    res = db.execute(
        update(ListingAnalytics)
        .where(ListingAnalytics.listing_id == listing_id)
        .values(views_count=ListingAnalytics.views_count + 1, last_viewed=func.now())
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        db.add(ListingAnalytics(listing_id=listing_id, views_count=1, inquiries_count=0,
                                last_viewed=func.now()))
    db.commit()
    return listing_to_out(get_listing(db, listing_id))


def create_listing(db: Session, payload: ListingCreate, status: ListingStatus) -> ListingOut:
    data = normalize_new_listing(payload)
    if db.get(Category, data["category_id"]) is None:
        raise UnknownCategory(data["category_id"])
    if data["seller_id"] is not None and db.get(Seller, data["seller_id"]) is None:
        raise UnknownSeller(data["seller_id"])
    exists = db.execute(select(Listing.id).where(Listing.name == data["name"])).first()
    if exists:
        raise DuplicateListing(data["name"])

    keywords = data.pop("keywords")
    obj = Listing(**data, status=status.value, is_featured=False)
    obj.keyword_rows = [ListingKeyword(position=i, keyword=k) for i, k in enumerate(keywords)]
    obj.analytics = ListingAnalytics(views_count=0, inquiries_count=0)
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent insert of the same name
        db.rollback()
        raise DuplicateListing(data["name"])
    logger.info("Created listing %s (%s) as %s", obj.id, obj.name, status.value)
    return listing_to_out(get_listing(db, obj.id, active_only=False))


def update_status(db: Session, listing_id: int, status: ListingStatus) -> ListingOut:
    obj = db.get(Listing, listing_id)
    if obj is None:
        raise ListingNotFound(listing_id)
    current = obj.status
    new_status = check_transition(current, status)
    # compare-and-set: a concurrent change since the read matches no row
    res = db.execute(
        update(Listing)
        .where(Listing.id == listing_id, Listing.status == current)
        .values(status=new_status.value)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        db.rollback()
        latest = db.get(Listing, listing_id)
        raise InvalidStatusTransition(latest.status if latest else current, new_status.value)
    db.commit()
    logger.info("Listing %s moved to %s", listing_id, new_status.value)
    return listing_to_out(get_listing(db, listing_id, active_only=False))


def list_categories(db: Session) -> List[CategoryOut]:
    stmt = (
        select(Category, func.count(Listing.id))
        .outerjoin(Listing, (Listing.category_id == Category.id)
                   & (Listing.status == ListingStatus.active.value))
        .group_by(Category.id)
        .order_by(Category.name, Category.id)
    )
    return [
        CategoryOut(id=c.id, name=c.name, slug=c.slug, description=c.description,
                    listing_count=count)
        for c, count in db.execute(stmt).all()
    ]


def market_stats(db: Session) -> MarketStats:
    def _scalar(stmt):
        return db.execute(stmt).scalar_one()

    active = Listing.status == ListingStatus.active.value
    sold = Listing.status == ListingStatus.sold.value
    return MarketStats(
        active_listings=_scalar(select(func.count(Listing.id)).where(active)),
        sold_listings=_scalar(select(func.count(Listing.id)).where(sold)),
        total_sales_value=float(_scalar(select(func.coalesce(func.sum(Listing.price), 0)).where(sold))),
        average_price=float(_scalar(select(func.coalesce(func.avg(Listing.price), 0)).where(active))),
    )


def seed_catalogue(db: Session, categories: List[Dict[str, Any]], sellers: List[Dict[str, Any]],
                   listings: List[Dict[str, Any]]):
    """Load a catalogue into the database; re-running updates rows in place."""
    for c in categories:
        db.merge(Category(**c))
    for s in sellers:
        db.merge(Seller(**s))
    for item in listings:
        data = dict(item)
        keywords = data.pop("keywords", [])
        views = data.pop("views_count", 0)
        inquiries = data.pop("inquiries_count", 0)
        obj = Listing(**data)
        obj.keyword_rows = [ListingKeyword(position=i, keyword=k) for i, k in enumerate(keywords)]
        obj.analytics = ListingAnalytics(listing_id=data["id"], views_count=views,
                                         inquiries_count=inquiries)
        db.merge(obj)
    db.commit()
    if db.get_bind().dialect.name == "postgresql":
        # explicit ids leave the serial sequences behind
        for table in ("categories", "sellers", "listings"):
            db.execute(text(
                f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                f"COALESCE((SELECT MAX(id) FROM {table}), 1))"
            ))
        db.commit()
    logger.info("Seeded %d categories, %d sellers, %d listings",
                len(categories), len(sellers), len(listings))
