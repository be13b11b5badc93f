"""Create the schema and load the built-in catalogue into the database.

Run from the project root with POSTGRES_URL set (a `.env` file works):

    python seed_database.py
"""
from app import crud, fixtures
from app.db import Base, SessionLocal, engine, probe_database
import app.models  # noqa: F401 ensure models are imported so tables are known


def main():
    if engine is None:
        raise SystemExit("POSTGRES_URL not set")
    if not probe_database():
        raise SystemExit("Database is not reachable")
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        crud.seed_catalogue(db, fixtures.CATEGORIES, fixtures.SELLERS, fixtures.LISTINGS)
    print(f"Seeded {len(fixtures.LISTINGS)} listings into {engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    main()
