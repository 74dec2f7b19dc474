import logging
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from dashboard.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def is_memory_database(database_url: str) -> bool:
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def make_engine(database_url: str) -> Engine:
    """
    Create an engine configured for the URL's dialect.

    In-memory SQLite keeps one shared connection (StaticPool); otherwise every
    pooled connection would open its own empty database.
    """
    if is_memory_database(database_url):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},  # Required for SQLite
            echo=False,
        )
    # PostgreSQL: drop stale pooled connections before use
    return create_engine(database_url, pool_pre_ping=True, echo=False)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False)


engine = make_engine(settings.database_url)
logger.info(f"Database engine created: dialect={engine.dialect.name}, url={settings.redacted_database_url()}")

SessionLocal = make_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
