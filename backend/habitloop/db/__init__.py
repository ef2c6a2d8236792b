"""Database utilities and models."""

from habitloop.db.base import Base
from habitloop.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
