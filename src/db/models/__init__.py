# SQLAlchemy models
from .audit import AuditSessionRow
from .base import Base

__all__ = ["AuditSessionRow", "Base"]
