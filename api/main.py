import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from api import deps, errors
from api.routers import listings
from api.sql import create_schema

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CREATE_SCHEMA = os.getenv("CREATE_SCHEMA", "true").strip().lower() in ("1", "true", "yes")

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO),
                    format="%(asctime)s | %(levelname)s | %(message)s")
LOG = logging.getLogger("api")

@asynccontextmanager
async def lifespan(app: FastAPI):
    if CREATE_SCHEMA:
        create_schema(deps.engine)
        LOG.info("listings schema ready")
    yield
    deps.engine.dispose()

app = FastAPI(
    title="Real Estate Listings API",
    version="1.0.0",
    description="Create, search and manage real-estate listings with generated descriptions.",
    lifespan=lifespan,
)

errors.register(app)
app.include_router(listings.router)

@app.get("/api/health")
def health():
    return {"status": "ok"}
