#!/usr/bin/env python3
"""Initialize database tables."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger

from orderflow.config.settings import settings
from orderflow.database import create_engine, init_models
from orderflow.logging_setup import setup_logging


async def init_database(database_url: str | None = None) -> None:
    """Create all database tables."""
    url = database_url or settings.database_url

    logger.info("Connecting to database...")
    engine = create_engine(url, echo=False)

    try:
        logger.info("Creating tables (checkfirst=True)...")
        await init_models(engine)
    finally:
        await engine.dispose()

    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database(sys.argv[1] if len(sys.argv) > 1 else None))
