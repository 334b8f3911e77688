"""
HealthRisk Domain Models Base

SQLAlchemy declarative base shared by the reference models
"""
from typing import Any, Dict

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """SQLAlchemy declarative base"""

    def to_dict(self) -> Dict[str, Any]:
        return {column.name: getattr(self, column.key) for column in self.__table__.columns}

    def __repr__(self) -> str:
        keys = ", ".join(f"{c.key}={getattr(self, c.key, None)!r}" for c in self.__table__.primary_key)
        return f"<{self.__class__.__name__}({keys})>"
