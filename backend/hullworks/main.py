"""
HULLWORKS MES — FastAPI ASGI Entry Point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hullworks.api.v1.router import api_router
from hullworks.config import get_settings
from hullworks.core.auth_middleware import JWTAuthMiddleware
from hullworks.core.exceptions import register_exception_handlers

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — dispose the engine pool on shutdown."""
    logger.info("HULLWORKS MES starting (%s)", settings.ENVIRONMENT)
    yield
    from hullworks.db.session import engine

    await engine.dispose()


app = FastAPI(
    title="HULLWORKS MES",
    description="Boat factory manufacturing execution: routings, work orders, stations and labor metrics",
    version="0.1.0",
    docs_url="/api/v1/docs",
    redoc_url="/api/v1/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)
app.add_middleware(JWTAuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    """Health check for load balancers and Docker."""
    return {"status": "ok", "service": "hullworks-mes"}
