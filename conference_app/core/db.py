"""
Database engine, session factory and declarative base
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from conference_app.core.config import settings

Base = declarative_base()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # timeout is how long a writer waits for the database lock
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        _enable_sqlite_foreign_keys(engine)
        return engine
    return create_engine(database_url, pool_pre_ping=True)


def is_sqlite(db) -> bool:
    return db.get_bind().dialect.name == "sqlite"


engine = create_db_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Request-scoped database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
