"""Database utilities and models."""

from pulse.db.base import Base
from pulse.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
