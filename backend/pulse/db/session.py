"""Engine and session factory."""
from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from pulse.core.config import settings

SessionLocal = sessionmaker(autoflush=False, autocommit=False, future=True)


@lru_cache
def get_engine() -> Engine:
    """Create the process-wide engine on first use."""
    return create_engine(settings.database_url, pool_pre_ping=True, future=True)


def new_session() -> Session:
    return SessionLocal(bind=get_engine())
