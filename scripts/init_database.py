#!/usr/bin/env python3
"""Create staking tables directly from the models (development databases)."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger

from app.config.database import create_engine
from app.models import Base

logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all tables that do not exist yet."""
    engine = create_engine()
    logger.info("Connecting to database...")

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
