"""
Create metadata store tables.

Usage:
    python -m retrieval_core.boundary.db.create_tables

Dependencies: sqlalchemy, retrieval_core.boundary.db
System role: Schema bootstrap for development and tests
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from retrieval_core.boundary.db.base import Base
from retrieval_core.boundary.db.connection import get_async_engine
from retrieval_core.boundary.db import models  # noqa: F401  (registers tables)

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all registered tables if they do not exist.

    Args:
        engine: Engine to use (created from settings if None)
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{__name__}:create_tables - Tables ensured: {sorted(Base.metadata.tables)}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_tables())
