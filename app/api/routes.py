# app/api/routes.py
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from .. import schemas
from ..db import store_available
from ..query import DEFAULT_LIMIT, MAX_LIMIT, ListingQuery
from ..repository import ListingRepository
from ..services import (DuplicateListing, InvalidStatusTransition, ListingNotFound,
                        UnknownCategory, UnknownSeller)
from ..utils import logger

router = APIRouter()


def get_repository(request: Request) -> ListingRepository:
    return request.app.state.repository


@router.get("/health")
def health():
    return {
        "status": "ok",
        "store": "database" if store_available() else "fixtures",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/listings", response_model=schemas.ListingPage)
def listings(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    category: str | None = Query(None),
    min_price: float | None = Query(None, ge=0, alias="minPrice"),
    max_price: float | None = Query(None, ge=0, alias="maxPrice"),
    search: str | None = Query(None),
    featured: bool | None = Query(None),
    sort_by: Literal["price", "name", "created_at", "traffic", "featured"] = Query("created_at", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    repo: ListingRepository = Depends(get_repository)
):
    query = ListingQuery(
        page=page,
        limit=limit,
        category=category,
        min_price=min_price,
        max_price=max_price,
        search=search,
        featured=featured,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    try:
        return repo.list_listings(query)
    except SQLAlchemyError as e:
        logger.exception("Fetching listings failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch listings")


@router.get("/listings/featured", response_model=schemas.FeaturedListings)
def featured_listings(repo: ListingRepository = Depends(get_repository)):
    try:
        return {"items": repo.featured()}
    except SQLAlchemyError as e:
        logger.exception("Fetching featured listings failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch featured listings")


@router.get("/listings/stats", response_model=schemas.MarketStats)
def market_stats(repo: ListingRepository = Depends(get_repository)):
    try:
        return repo.stats()
    except SQLAlchemyError as e:
        logger.exception("Fetching stats failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch statistics")


@router.get("/listings/categories", response_model=schemas.CategoryList)
def categories(repo: ListingRepository = Depends(get_repository)):
    try:
        return {"categories": repo.categories()}
    except SQLAlchemyError as e:
        logger.exception("Fetching categories failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch categories")


@router.get("/listings/{listing_id}", response_model=schemas.ListingOut)
def get_listing(listing_id: int, repo: ListingRepository = Depends(get_repository)):
    try:
        return repo.view_listing(listing_id)
    except ListingNotFound:
        raise HTTPException(status_code=404, detail="Listing not found")
    except SQLAlchemyError as e:
        logger.exception("Fetching listing %s failed: %s", listing_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch listing")


@router.post("/listings", response_model=schemas.ListingOut, status_code=status.HTTP_201_CREATED)
def create_listing(payload: schemas.ListingCreate, repo: ListingRepository = Depends(get_repository)):
    try:
        return repo.create_listing(payload)
    except DuplicateListing:
        raise HTTPException(status_code=409, detail="Listing name already exists")
    except (UnknownCategory, UnknownSeller) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError as e:
        logger.exception("Creating listing failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create listing")


@router.patch("/listings/{listing_id}/status", response_model=schemas.ListingOut)
def update_listing_status(listing_id: int, payload: schemas.ListingStatusUpdate,
                          repo: ListingRepository = Depends(get_repository)):
    try:
        return repo.update_status(listing_id, payload.status)
    except ListingNotFound:
        raise HTTPException(status_code=404, detail="Listing not found")
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError as e:
        logger.exception("Updating listing %s failed: %s", listing_id, e)
        raise HTTPException(status_code=500, detail="Failed to update listing")
