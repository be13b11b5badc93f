# app/services.py
"""Marketplace rules shared by the fixture and database repositories."""
from typing import Dict, Any

from .models import ListingStatus
from .schemas import ListingCreate

# status -> statuses it may move to; sold and rejected are terminal
ALLOWED_TRANSITIONS = {
    ListingStatus.active: {ListingStatus.sold, ListingStatus.pending},
    ListingStatus.pending: {ListingStatus.active, ListingStatus.rejected},
    ListingStatus.sold: set(),
    ListingStatus.rejected: set(),
}


class MarketplaceError(Exception):
    pass


class ListingNotFound(MarketplaceError):
    def __init__(self, listing_id):
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id


class DuplicateListing(MarketplaceError):
    def __init__(self, name):
        super().__init__(f"Listing name {name!r} already exists")
        self.name = name


class UnknownCategory(MarketplaceError):
    def __init__(self, category_id):
        super().__init__(f"Category {category_id} does not exist")
        self.category_id = category_id


class UnknownSeller(MarketplaceError):
    def __init__(self, seller_id):
        super().__init__(f"Seller {seller_id} does not exist")
        self.seller_id = seller_id


class InvalidStatusTransition(MarketplaceError):
    def __init__(self, current, requested):
        super().__init__(f"Cannot move listing from {current} to {requested}")
        self.current = current
        self.requested = requested


def check_transition(current, requested) -> ListingStatus:
    current, requested = ListingStatus(current), ListingStatus(requested)
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, requested.value)
    return requested


def initial_status(moderation: bool) -> ListingStatus:
    return ListingStatus.pending if moderation else ListingStatus.active


def normalize_new_listing(payload: ListingCreate) -> Dict[str, Any]:
    data = payload.model_dump()
    data["name"] = data["name"].lower()
    # two decimal places, as stored by the database
    data["price"] = float(data["price"])
    data["keywords"] = [k.strip() for k in data["keywords"] if k and k.strip()]
    return data
