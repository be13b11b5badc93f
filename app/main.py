from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import router as api_router
from app.config import get_settings
from app.db import Base, engine, probe_database
import app.models  # noqa: F401 ensure models are imported so tables are known
from app.repository import select_repository
from app.utils import logger

settings = get_settings()

# create FastAPI instance
app = FastAPI(title="Domain Marketplace")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(p) for p in err["loc"][1:]) or str(err["loc"][0]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"errors": errors})


@app.on_event("startup")
def on_startup_select_store():
    # decided once per process; requests never re-probe
    if probe_database():
        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            # migrations may own the schema; keep serving
            logger.warning("create_all failed: %s", e)
    app.state.repository = select_repository(moderation=settings.listing_moderation)
