from __future__ import annotations

import logging
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import DeclarativeBase

from apr_tracker.domain.exceptions import StoreUnavailableError


logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


@lru_cache(maxsize=4)
def get_engine(dsn: str):
    connect_args = {"check_same_thread": False} if dsn.startswith("sqlite") else {}
    return create_engine(dsn, future=True, pool_pre_ping=True, connect_args=connect_args)


def ensure_schema(engine) -> None:
    # Registers the table on Base.metadata.
    from apr_tracker.infrastructure.db.models import snapshots  # noqa: F401

    try:
        Base.metadata.create_all(engine)
    except (OperationalError, InterfaceError) as exc:
        logger.error("db_engine: ensure_schema_failed error=%s", exc)
        raise StoreUnavailableError("Snapshot store is unavailable.") from exc
