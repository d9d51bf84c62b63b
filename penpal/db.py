"""
Async Database Configuration
"""
import logging
from urllib.parse import urlparse, parse_qs, urlunparse

from sqlalchemy import BigInteger, Integer
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

import core.config as config

logger = logging.getLogger(__name__)

DATABASE_URL = config.DATABASE_URL

if not DATABASE_URL:
    if config.TESTING:
        # Tests build their own engines; this one is never connected
        DATABASE_URL = "sqlite+aiosqlite:///:memory:"
        logger.warning("DATABASE_URL not set, using in-memory SQLite for testing")
    else:
        raise ValueError("DATABASE_URL environment variable is not set")

connect_args = {}

if DATABASE_URL.startswith("postgres://") or DATABASE_URL.startswith("postgresql://"):
    # asyncpg doesn't support query string parameters, so we remove them all
    parsed = urlparse(DATABASE_URL)
    query_params = parse_qs(parsed.query)
    sslmode = query_params.pop("sslmode", [None])[0]
    DATABASE_URL = urlunparse(parsed._replace(query=""))

    if sslmode in ["require", "prefer", "allow", "verify-ca", "verify-full"]:
        connect_args["ssl"] = True
    elif sslmode == "disable":
        connect_args["ssl"] = False

    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)
    else:
        DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

if DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(DATABASE_URL, echo=False)
else:
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=300,
        connect_args=connect_args,
    )

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Create declarative base
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


async def get_async_db():
    """Dependency to get async database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables(bind=None):
    """Create all tables on the given engine (defaults to the app engine)."""
    from penpal.models import account, creature, letters, purchase  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
