"""
Infrastructure layer: async SQLAlchemy engine, session factory and tables.
"""
import contextlib
import logging
import uuid
from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy import Column, Integer, String, Text, UniqueConstraint
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from native_trees.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class TreeSpecies(Base):
    """
    Tree species confirmed present at a location.

    This model corresponds to the 'tree_species' table in the database.
    One row exists per (external_id, city, state).
    """
    __tablename__ = "tree_species"
    __table_args__ = (
        UniqueConstraint("external_id", "city", "state", name="uq_tree_species_location"),
    )

    # Surrogate key preserves insertion (rank) order within a location
    row_id = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))
    external_id = Column(Text, nullable=True, index=True)
    common_name = Column(Text, nullable=False)
    scientific_name = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    habitat_description = Column(Text, nullable=False)
    max_height = Column(Integer, nullable=True)  # in feet
    max_age = Column(Integer, nullable=True)  # in years
    city = Column(Text, nullable=False)
    state = Column(String(2), nullable=False)


class Database:
    """Owns the async engine and hands out sessions."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.database_url
        self.async_engine = create_async_engine(self.url, pool_pre_ping=True)
        self.async_session_local = async_sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.async_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def initialize(self) -> None:
        """Create tables if they do not exist."""
        async with self.async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized")

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide an async database session."""
        async with self.async_session_local() as session:
            yield session

    async def dispose(self) -> None:
        await self.async_engine.dispose()


# Singleton instance
_database: Optional[Database] = None


def get_database() -> Database:
    """
    Get or create the singleton database instance.

    Returns:
        Database instance
    """
    global _database
    if _database is None:
        _database = Database()
    return _database
