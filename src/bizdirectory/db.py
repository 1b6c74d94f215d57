from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import load_config

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


_config = load_config()
_engine = create_engine(
    _config.database_url,
    pool_pre_ping=True,
    pool_recycle=3600,  # Recycle connections after 1 hour to prevent stale connections
    pool_timeout=30,  # Timeout after 30 seconds waiting for a connection from the pool
)
SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)


@contextmanager
def session_scope():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def ping_database() -> None:
    """Run a trivial round trip; raises the driver error when storage is unreachable."""
    with _engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def _log_retry(retry_state) -> None:
    logger.warning(
        "Database not reachable (attempt %d): %s",
        retry_state.attempt_number,
        retry_state.outcome.exception(),
    )


def wait_for_database() -> None:
    """Block until storage answers, retrying with backoff a bounded number of times.

    Only used at process startup; request handling never retries.
    """
    attempts = load_config().db_connect_attempts

    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(OperationalError),
        before_sleep=_log_retry,
        reraise=True,
    )
    def _connect() -> None:
        ping_database()

    _connect()
    logger.info("Database connection established")
