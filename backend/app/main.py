"""Book Porter API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map BookPorterError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database manager and payment gateway constructed in the lifespan, stored on app.state,
      disposed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers: BookPorterError (domain), RequestValidationError
      (Pydantic), Exception (catch-all) — never leaks internal details
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import books, health, invoices, orders, payments
from app.config import get_settings
from app.infrastructure.database import DatabaseSessionManager
from app.infrastructure.observability import setup_logging
from app.infrastructure.stripe_gateway import StripePaymentGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    app.state.db_manager = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.payment_gateway = StripePaymentGateway(
        api_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        currency=settings.stripe_currency,
        client_url=settings.client_url,
        tolerance_seconds=settings.stripe_webhook_tolerance_seconds,
    )
    logger.info("Book Porter API started")
    yield
    logger.info("Book Porter API shutting down")
    await app.state.db_manager.dispose()


app = FastAPI(
    title="Book Porter API", version="1.0.0", lifespan=lifespan,
)

# CORS origins from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(health.router)
app.include_router(books.router)
app.include_router(orders.router)
app.include_router(payments.router)
app.include_router(invoices.router)

register_error_handlers(app)
