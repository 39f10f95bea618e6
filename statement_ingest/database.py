from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings


def enable_sqlite_savepoints(engine):
    """
    Let SQLAlchemy issue BEGIN itself so SAVEPOINT / ROLLBACK TO work on
    pysqlite, which otherwise manages transactions on its own.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


is_sqlite = settings.DATABASE_URL.startswith("sqlite")

# Create engine
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if is_sqlite else {},
)
if is_sqlite:
    enable_sqlite_savepoints(engine)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create base class for models
Base = declarative_base()


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """Create all database tables"""
    # Models must be registered on Base.metadata before create_all
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
