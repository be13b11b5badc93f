# app/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from .models import ListingStatus

# largest value a Numeric(12, 2) price column holds
MAX_PRICE = Decimal("9999999999.99")


class ListingOut(BaseModel):
    id: int
    name: str
    price: float
    description: Optional[str] = None
    category: Optional[str] = None
    category_slug: Optional[str] = None
    is_featured: bool = False
    traffic_monthly: Optional[int] = None
    domain_age_years: Optional[int] = None
    seo_score: Optional[int] = None
    backlinks_count: Optional[int] = None
    keywords: List[str] = Field(default_factory=list)
    status: ListingStatus = ListingStatus.active
    created_at: Optional[datetime] = None
    seller_name: Optional[str] = None
    seller_company: Optional[str] = None
    views_count: int = 0
    inquiries_count: int = 0


class ListingCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=3, max_length=255)
    price: Decimal = Field(..., ge=1, le=MAX_PRICE, max_digits=12, decimal_places=2)
    category_id: int = Field(..., ge=1)
    description: str = Field(..., min_length=10, max_length=1000)
    traffic_monthly: Optional[int] = Field(None, ge=0)
    domain_age_years: Optional[int] = Field(None, ge=0)
    keywords: List[str] = Field(default_factory=list)
    seller_id: Optional[int] = Field(None, ge=1)


class ListingStatusUpdate(BaseModel):
    status: ListingStatus


class Pagination(BaseModel):
    """Page metadata, serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


class ListingPage(BaseModel):
    items: List[ListingOut]
    pagination: Pagination


class FeaturedListings(BaseModel):
    items: List[ListingOut]


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    listing_count: int = 0


class CategoryList(BaseModel):
    categories: List[CategoryOut]


class MarketStats(BaseModel):
    active_listings: int
    sold_listings: int
    total_sales_value: float
    average_price: float
