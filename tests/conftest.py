# tests/conftest.py
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import crud, fixtures
from app.api.routes import get_repository
from app.db import Base
from app.main import app as fastapi_app
from app.repository import FixtureListingRepository, SqlListingRepository


def make_catalogue():
    """A larger catalogue with price ties, missing traffic and inactive rows."""
    slugs = [1, 2, 3, 4, 5]
    words = ["cloud", "pay", "care", "shop", "learn", "ai", "data", "fit"]
    listings = [dict(item) for item in fixtures.LISTINGS]
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    for n in range(4, 30):
        word = words[n % len(words)]
        listings.append({
            "id": n,
            "name": f"{word}{n:02d}.com",
            "price": float(1000 * (n % 7) + 500),
            "description": f"Brandable {word} domain number {n}" + (" with 100% match" if n == 11 else ""),
            "category_id": slugs[n % len(slugs)],
            "seller_id": (n % 3) + 1,
            "is_featured": n % 4 == 0,
            "traffic_monthly": None if n % 5 == 0 else 100 * (n % 9),
            "domain_age_years": n % 6,
            "seo_score": 50 + n,
            "backlinks_count": 10 * n,
            "keywords": [word, f"KW{n}"],
            "status": {13: "sold", 17: "pending", 23: "sold"}.get(n, "active"),
            # pairs of listings share a timestamp
            "created_at": base + timedelta(days=n // 2),
            "views_count": n,
            "inquiries_count": n % 4,
        })
    return listings


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    crud.seed_catalogue(session, fixtures.CATEGORIES, fixtures.SELLERS, fixtures.LISTINGS)
    yield session
    session.close()


@pytest.fixture
def sql_repo(session_factory):
    with session_factory() as session:
        crud.seed_catalogue(session, fixtures.CATEGORIES, fixtures.SELLERS, fixtures.LISTINGS)
    return SqlListingRepository(session_factory)


@pytest.fixture
def fixture_repo():
    return FixtureListingRepository(fixtures.CATEGORIES, fixtures.SELLERS, fixtures.LISTINGS)


@pytest.fixture
def catalogue():
    return make_catalogue()


@pytest.fixture
def sql_catalogue_repo(session_factory, catalogue):
    with session_factory() as session:
        crud.seed_catalogue(session, fixtures.CATEGORIES, fixtures.SELLERS, catalogue)
    return SqlListingRepository(session_factory)


@pytest.fixture
def fixture_catalogue_repo(catalogue):
    return FixtureListingRepository(fixtures.CATEGORIES, fixtures.SELLERS, catalogue)


@pytest.fixture
def client_for():
    """Build a TestClient whose requests are served by the given repository."""
    def _make(repo):
        fastapi_app.dependency_overrides[get_repository] = lambda: repo
        return TestClient(fastapi_app)
    yield _make
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(client_for, fixture_repo):
    return client_for(fixture_repo)
