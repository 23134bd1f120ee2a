"""
User (practitioner) model definitions
"""

from sqlalchemy import Column, String, DateTime, Boolean, Enum, Integer, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from enum import Enum as PyEnum
import uuid

from core.database import Base

class UserRole(PyEnum):
    """User role enumeration"""
    PRACTITIONER = "gutachter"
    ADMIN = "admin"

class User(Base):
    """Practitioner ("Gutachter") or administrator account"""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # Basic information
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)

    # Role and practitioner identity
    role = Column(Enum(UserRole), nullable=False, default=UserRole.PRACTITIONER)
    practitioner_number = Column(Integer, unique=True, index=True)

    # Profile information
    phone = Column(String(30))
    company = Column(String(200))
    specialty = Column(String(200))
    regions = Column(JSON)
    address = Column(JSON)

    # Activation and password reset
    is_activated = Column(Boolean, default=False)
    activation_token = Column(String(128))
    reset_password_token = Column(String(128))
    reset_password_expires = Column(DateTime(timezone=True))

    # Audit fields
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login = Column(DateTime(timezone=True))

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}"

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', practitioner_number={self.practitioner_number})>"
