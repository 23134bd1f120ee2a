"""
Case model definitions
"""

from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, Enum, JSON, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum as PyEnum
import uuid

from core.database import Base

class CaseStatus(PyEnum):
    """Case lifecycle status"""
    OPEN = "Offen"
    IN_PROGRESS = "In Bearbeitung"
    TRANSMITTED = "Übermittelt"
    COMPLETED = "Abgeschlossen"
    CANCELLED = "Storniert"

class Case(Base):
    """Client intake matter owned by a practitioner"""
    __tablename__ = "cases"
    __table_args__ = (
        UniqueConstraint("practitioner_number", "sequence_number", name="uq_case_practitioner_sequence"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String(200), nullable=False)
    file_number = Column(String(50), nullable=False, index=True)

    # Case-file number parts
    practitioner_number = Column(Integer, nullable=False, index=True)
    sequence_number = Column(Integer, nullable=False)

    status = Column(Enum(CaseStatus), nullable=False, default=CaseStatus.OPEN)
    case_date = Column(DateTime(timezone=True), server_default=func.now())

    # Free-form sub-records, validated by schemas.case
    client_data = Column(JSON)
    first_party = Column(JSON)
    second_party = Column(JSON)
    damage = Column(JSON)

    privacy_accepted = Column(Boolean, nullable=False, default=False)
    transmission_count = Column(Integer, nullable=False, default=0)

    # Ownership
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    assigned_to = Column(UUID(as_uuid=True), ForeignKey("users.id"))

    # Audit fields
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    owner = relationship("User", foreign_keys=[created_by])
    assignee = relationship("User", foreign_keys=[assigned_to])
    documents = relationship(
        "Document",
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="Document.uploaded_at"
    )
    notes = relationship(
        "CaseNote",
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="CaseNote.created_at"
    )

    def __repr__(self):
        return f"<Case(id={self.id}, file_number='{self.file_number}', title='{self.title}')>"

class CaseNote(Base):
    """Free-text note on a case, stamped with author and time"""
    __tablename__ = "case_notes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    case_id = Column(UUID(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    case = relationship("Case", back_populates="notes")
    author = relationship("User")

    def __repr__(self):
        return f"<CaseNote(id={self.id}, case_id={self.case_id})>"
