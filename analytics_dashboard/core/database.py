from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

# Import all models to register them with SQLModel metadata
from analytics_dashboard.models import (  # noqa: F401
    User,
    MagicLinkToken,
    Merchant,
    UserMerchant,
    PromptHistory,
    Transaction,
)


class Database:
    """
    Owns the engine and session factory for one process.

    Created by the application factory and stored on ``app.state.database``;
    closed by the lifespan handler. Nothing else holds a module-level engine.
    """

    def __init__(self, url: str, engine: Optional[Engine] = None):
        self.url = url
        self.engine = engine or self._create_engine(url)
        self.session_factory = sessionmaker(
            bind=self.engine,
            class_=Session,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    @staticmethod
    def _create_engine(url: str) -> Engine:
        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url:
                kwargs["poolclass"] = StaticPool
            return create_engine(url, **kwargs)
        return create_engine(url, pool_pre_ping=True)

    def init_db(self) -> None:
        """Create all tables"""
        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def close(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for getting database session"""
    database: Database = request.app.state.database
    with database.session() as session:
        yield session
