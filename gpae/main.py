# gpae/main.py
"""
GPAE booking API application.

Run with ``uvicorn gpae.main:app``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from .core.config import is_running_tests, settings
from .core.constants import API_TITLE, BRAND_NAME
from .database import check_database_connection, init_db
from .errors import register_error_handlers
from .middleware.timing import TimingMiddleware
from .routes import auth, health, instructors, mail, metrics, reservations, users

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Check the store and create missing tables; an unreachable store aborts startup."""
    logger.info(f"{BRAND_NAME} API starting up (environment={settings.environment})")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    try:
        check_database_connection()
    except SQLAlchemyError as e:
        logger.critical(f"Database unreachable at startup: {str(e)}")
        raise
    init_db()
    logger.info("Database connection OK")

    yield

    logger.info(f"{BRAND_NAME} API shutting down")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

register_error_handlers(app)

app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s allow_credentials=%s", settings.cors_origins, True)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(reservations.router)
app.include_router(instructors.router)
app.include_router(mail.router)
app.include_router(metrics.router)
