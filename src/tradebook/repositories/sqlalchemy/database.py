"""Database connection and session management."""

from typing import Generator, Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from tradebook.config.settings import get_settings

Base = declarative_base()

# Module-level database state (can be reconfigured at runtime)
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, echo=False)


def get_engine() -> Engine:
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = _build_engine(settings.get_database_url())
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session() -> Session:
    """Get a new database session (for non-generator use)."""
    SessionLocal = get_session_factory()
    return SessionLocal()


def init_db() -> None:
    """Initialize database tables."""
    from tradebook.repositories.sqlalchemy import orm_models  # noqa: F401

    engine = get_engine()
    Base.metadata.create_all(bind=engine)


def init_db_with_url(database_url: str) -> None:
    """Point the module at a specific database and create its tables."""
    global _engine, _SessionLocal

    _engine = _build_engine(database_url)
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine,
    )

    from tradebook.repositories.sqlalchemy import orm_models  # noqa: F401
    Base.metadata.create_all(bind=_engine)


def reset_database() -> None:
    """Reset database state (for reconfiguration)."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = None
    _SessionLocal = None
