import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from app.core.config import settings
from app.core.errors import APIException, DuplicateKeyError, InternalError

logger = logging.getLogger(__name__)

# SQLAlchemy Base class for models to inherit
Base = declarative_base()


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared connection so in-memory databases survive across threads
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {"pool_pre_ping": True}  # helps avoid stale connections


# Create SQLAlchemy engine (Postgres in production, SQLite for tests)
engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))


if engine.dialect.name == "sqlite":
    @event.listens_for(engine, "connect")
    def _enable_sqlite_fks(dbapi_connection, connection_record):
        # ON DELETE CASCADE is ignored by SQLite unless this is on
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Factory that creates DB sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def dialect_insert(db, model):
    """Return an INSERT construct that supports ON CONFLICT for the bound dialect."""
    name = db.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"Unsupported database dialect: {name}")


# Dependency we will use in FastAPI routes
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db, action: str, conflict: str | None = None):
    """Commit on success, roll back on any failure.

    Storage errors are logged and surfaced as InternalError. When `conflict`
    is given, a unique-constraint violation becomes DuplicateKeyError instead.
    """
    try:
        yield db
        db.commit()
    except APIException:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        if conflict is not None:
            raise DuplicateKeyError(conflict) from exc
        logger.exception("Integrity failure during %s", action)
        raise InternalError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure during %s", action)
        raise InternalError() from exc
    except Exception:
        db.rollback()
        raise
