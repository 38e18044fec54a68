"""
Conexión a base de datos PostgreSQL (Supabase)

Este módulo centraliza TODAS las formas de acceso a la base de datos:
- psycopg2 directo (repositories, transacciones de settlement)
- SQLAlchemy (solo para definir y crear el esquema)
- Supabase client (tabla de notificaciones)
"""
import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from supabase import Client, create_client

from .config import settings
from .errors import PersistenceError

logger = logging.getLogger(__name__)


# ============================================================================
# SQLAlchemy Configuration (schema definition only)
# ============================================================================

# Base para modelos
Base = declarative_base()

_engine = None


def get_engine():
    """Lazily build the SQLAlchemy engine from DATABASE_URL"""
    global _engine
    if _engine is None:
        if not settings.DATABASE_URL:
            raise PersistenceError("DATABASE_URL not configured")
        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,  # Verificar conexión antes de usar
        )
    return _engine


def init_schema(engine=None) -> None:
    """
    Create every marketplace table that does not exist yet.

    Only called at startup when AUTO_CREATE_SCHEMA is enabled; production
    databases are migrated out of band.
    """
    # Register the models on Base.metadata
    from marketplace import models  # noqa: F401

    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.info(f"Schema ready: {', '.join(sorted(Base.metadata.tables))}")


# ============================================================================
# psycopg2 Direct Connections
# ============================================================================

def get_db_connection_dict():
    """
    Get a database connection with RealDictCursor (returns dictionaries)

    Returns:
        psycopg2 connection with RealDictCursor

    Raises:
        PersistenceError if DATABASE_URL is not configured
    """
    if not settings.DATABASE_URL:
        raise PersistenceError("DATABASE_URL not configured")

    return psycopg2.connect(
        settings.DATABASE_URL,
        cursor_factory=RealDictCursor,
        connect_timeout=settings.DB_CONNECTION_TIMEOUT,
    )


def get_db_connection_dict_with_retry(max_retries: Optional[int] = None, retry_delay: Optional[float] = None):
    """
    Get a RealDictCursor connection with automatic retry on connection failures

    Retries psycopg2.OperationalError with exponential backoff. Any other
    error fails immediately.

    Args:
        max_retries: Maximum number of connection attempts (default: DB_CONNECT_RETRIES)
        retry_delay: Initial delay between retries in seconds (default: DB_RETRY_DELAY)

    Returns:
        psycopg2 connection with RealDictCursor
    """
    max_retries = max_retries or settings.DB_CONNECT_RETRIES
    retry_delay = settings.DB_RETRY_DELAY if retry_delay is None else retry_delay

    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            return get_db_connection_dict()

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            # Don't retry on last attempt
            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)

    logger.error(f"All {max_retries} connection attempts failed")
    raise last_error


@contextmanager
def transaction() -> Iterator:
    """
    Run a block of writes as one database transaction.

    Commits when the block exits normally, rolls back on any exception.
    Driver errors (including connection failures after all retries) are
    re-raised as PersistenceError; core errors pass through unchanged.

    Example:
        with transaction() as conn:
            repo.insert_order(conn, ...)
            repo.insert_items(conn, ...)
    """
    try:
        conn = get_db_connection_dict_with_retry()
    except psycopg2.Error as e:
        raise PersistenceError(f"Database unavailable: {e}") from e

    try:
        yield conn
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        logger.error(f"Transaction rolled back: {e}")
        raise PersistenceError(f"Database write failed: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# ============================================================================
# Supabase Client (notifications)
# ============================================================================

_supabase: Optional[Client] = None


def get_supabase() -> Client:
    """Lazily create the Supabase client used by the notification sender"""
    global _supabase
    if _supabase is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise RuntimeError("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured")
        _supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    return _supabase
