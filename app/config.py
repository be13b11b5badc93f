# app/config.py
"""Runtime configuration read from the environment.

`get_settings()` is the only place environment variables are read; a `.env`
file is loaded first when present.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str]
    use_mock_data: bool
    db_pool_size: int
    db_max_overflow: int
    db_connect_tries: int
    listing_moderation: bool
    frontend_url: str
    log_level: str


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def _getflag(name: str, default: str = "false") -> bool:
    return (_getenv(name, default) or default).lower() in ("1", "true", "yes")


def normalize_database_url(url: Optional[str]) -> Optional[str]:
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


@lru_cache
def get_settings() -> Settings:
    load_dotenv(override=False)

    return Settings(
        database_url=normalize_database_url(_getenv("POSTGRES_URL")),
        use_mock_data=_getflag("USE_MOCK_DATA"),
        db_pool_size=int(_getenv("DB_POOL_SIZE", "5") or 5),
        db_max_overflow=int(_getenv("DB_MAX_OVERFLOW", "10") or 10),
        db_connect_tries=int(_getenv("DB_CONNECT_TRIES", "3") or 3),
        listing_moderation=_getflag("LISTING_MODERATION"),
        frontend_url=_getenv("FRONTEND_URL", "http://localhost:5173") or "",
        log_level=(_getenv("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
