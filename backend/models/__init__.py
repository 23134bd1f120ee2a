"""
Models package - imports all models for SQLAlchemy
"""

from core.database import Base
from .user import User, UserRole
from .case import Case, CaseNote, CaseStatus
from .document import Document, DocumentCategory, StorageKind

__all__ = [
    "Base",
    "User", "UserRole",
    "Case", "CaseNote", "CaseStatus",
    "Document", "DocumentCategory", "StorageKind"
]
