# app/models.py
"""SQLAlchemy ORM models for the marketplace catalogue.

`Listing` is the domain name for sale. Its category, seller, keywords and
view/inquiry counters live in their own tables and are joined in when a
listing is read. Listings are never deleted; they move through
`ListingStatus` instead.
"""
import enum
from datetime import timezone

from sqlalchemy import (Column, Integer, Text, String, Numeric, Boolean, TIMESTAMP,
                        ForeignKey, func, Index)
from sqlalchemy.types import TypeDecorator
from sqlalchemy.orm import relationship
from .db import Base


class UTCTimestamp(TypeDecorator):
    """Timestamp that always comes back timezone-aware in UTC.

    PostgreSQL returns values in the session time zone and SQLite drops the
    offset entirely; both are normalized here.
    """
    impl = TIMESTAMP
    cache_ok = True

    def __init__(self):
        super().__init__(timezone=True)

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
            if dialect.name == "sqlite":
                value = value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class ListingStatus(str, enum.Enum):
    active = "active"
    pending = "pending"
    sold = "sold"
    rejected = "rejected"


class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text)

    listings = relationship("Listing", back_populates="category")


class Seller(Base):
    __tablename__ = "sellers"
    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False, default="")
    company = Column(Text)
    email = Column(Text, unique=True)

    @property
    def display_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Listing(Base):
    __tablename__ = "listings"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    description = Column(Text)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    seller_id = Column(Integer, ForeignKey("sellers.id"))
    is_featured = Column(Boolean, nullable=False, default=False)
    traffic_monthly = Column(Integer)
    domain_age_years = Column(Integer)
    seo_score = Column(Integer)
    backlinks_count = Column(Integer)
    status = Column(String(20), nullable=False, default=ListingStatus.active.value)
    created_at = Column(UTCTimestamp(), server_default=func.now())
    updated_at = Column(UTCTimestamp(), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="listings")
    seller = relationship("Seller")
    keyword_rows = relationship("ListingKeyword", order_by="ListingKeyword.position",
                                cascade="all, delete-orphan")
    analytics = relationship("ListingAnalytics", uselist=False, cascade="all, delete-orphan")

    @property
    def keywords(self):
        return [k.keyword for k in self.keyword_rows]


class ListingKeyword(Base):
    __tablename__ = "listing_keywords"
    id = Column(Integer, primary_key=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    keyword = Column(Text, nullable=False)


class ListingAnalytics(Base):
    __tablename__ = "listing_analytics"
    listing_id = Column(Integer, ForeignKey("listings.id"), primary_key=True)
    views_count = Column(Integer, nullable=False, default=0)
    inquiries_count = Column(Integer, nullable=False, default=0)
    last_viewed = Column(UTCTimestamp())

Index("idx_listings_price", Listing.price)
Index("idx_listings_status_created", Listing.status, Listing.created_at)
