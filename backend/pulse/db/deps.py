"""FastAPI database dependencies."""
from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session

from pulse.db.session import new_session


def get_db() -> Iterator[Session]:
    """Yield a request-scoped session and always close it."""
    db = new_session()
    try:
        yield db
    finally:
        db.close()
