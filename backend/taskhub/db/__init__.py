"""Database package."""

from taskhub.db.base import Base, BaseModel

__all__ = ["Base", "BaseModel"]
