"""
Create the database tables for accounts, creatures, letters and purchases.
Run this script after setting up your database connection.

Usage:
    python -m scripts.initialize_db
"""

import asyncio
import logging

import core.config as config
from core.logging import configure_logging
from penpal.db import create_tables, engine

logger = logging.getLogger(__name__)


async def init_db():
    """Initialize database tables"""
    await create_tables()
    await engine.dispose()
    logger.info("Database tables created")


if __name__ == "__main__":
    configure_logging(environment=config.ENVIRONMENT, log_level=config.LOG_LEVEL)
    asyncio.run(init_db())
