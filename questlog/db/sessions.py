import logging
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from questlog.core.config import settings

logger = logging.getLogger("questlog.db.session")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)


def build_engine(database_url: str) -> Engine:
    """Engine for ``database_url``.

    SQLite connections are shared across threads (FastAPI runs sync routes in
    a pool), and an in-memory SQLite database is pinned to one connection so
    every session sees the same tables.
    """
    if not database_url:
        logger.error("DATABASE_URL is not configured. Set the DATABASE_URL env var.")
        raise RuntimeError("DATABASE_URL is not configured. Set the DATABASE_URL env var.")

    if not database_url.startswith("sqlite"):
        # enable pool_pre_ping to avoid stale/closed connections
        return create_engine(database_url, pool_pre_ping=True)

    options = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return create_engine(database_url, **options)


logger.info("Initializing DB session (dialect: %s)", settings.DATABASE_URL.split(":", 1)[0])
engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
