import uuid
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from analytics_dashboard import __version__
from analytics_dashboard.core.config import settings
from analytics_dashboard.core.database import Database
from analytics_dashboard.core.errors import register_exception_handlers
from analytics_dashboard.core.logging import configure_logging
from analytics_dashboard.models import Merchant, User, UserMerchant
from analytics_dashboard.controllers import (
    auth_controller,
    history_controller,
    merchants_controller,
    query_controller,
    solution_controller,
    transactions_controller,
)

logger = logging.getLogger(__name__)


def seed_superadmin(database: Database) -> None:
    """
    Create the configured superadmin and make them admin of the configured merchant
    """
    if not settings.SUPERADMIN_EMAIL:
        return

    with database.session() as s:
        email = settings.SUPERADMIN_EMAIL.lower()
        user = User.get_by_email(s, email)
        if not user:
            user = User(id=str(uuid.uuid4()), email=email, status="active")
            s.add(user)
            s.commit()
            logger.info(f"Seeded superadmin {email}")

        merchant_id = settings.SUPERADMIN_MERCHANT_ID
        if merchant_id:
            if not Merchant.get_by_id(s, merchant_id):
                s.add(Merchant(id=merchant_id, name=merchant_id))
                s.commit()
            if not UserMerchant.get_link(s, user.id, merchant_id):
                UserMerchant.create(s, user.id, merchant_id, role="admin")


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the API

    Args:
        database: Injected database (tests pass an in-memory one). When omitted
            the app creates one from DATABASE_URL and disposes it on shutdown.
    """
    owns_database = database is None
    database = database or Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        database.init_db()
        seed_superadmin(database)
        logger.info(f"{settings.APP_TITLE} {__version__} started")
        yield
        if owns_database:
            database.close()

    app = FastAPI(title=settings.APP_TITLE, version=__version__, lifespan=lifespan)
    app.state.database = database

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth_controller.router)  # Magic link + JWT (public)
    app.include_router(merchants_controller.router)
    app.include_router(query_controller.router)
    app.include_router(history_controller.router)
    app.include_router(transactions_controller.router)
    app.include_router(solution_controller.router)

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": settings.APP_TITLE,
            "docs": "/docs",
            "version": __version__
        }

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
