"""
Document model definitions
"""

from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum as PyEnum
import uuid

from core.config import settings
from core.database import Base

class DocumentCategory(PyEnum):
    """Document category enumeration"""
    DRIVING_LICENCE_FRONT = "fuehrerschein_vorne"
    DRIVING_LICENCE_BACK = "fuehrerschein_hinten"
    ID_CARD_FRONT = "personalausweis_vorne"
    ID_CARD_BACK = "personalausweis_hinten"
    VEHICLE_APPRAISAL = "kfz_gutachten"
    VEHICLE_REGISTRATION = "fahrzeugschein"
    INVOICES = "rechnungen"
    ACCIDENT_REPORT = "unfallbericht"
    ACCIDENT_PHOTOS = "unfall_bilder"
    MISC_LEGACY = "sonstige"
    CERTIFICATES = "atteste"
    REPAIR = "reparatur"
    OTHER = "sonstiges"

class StorageKind(PyEnum):
    """Where a document's bytes live"""
    LOCAL_PATH = "local_path"
    OBJECT_KEY = "object_key"
    REMOTE_URL = "remote_url"

    @classmethod
    def from_path(cls, path: str) -> "StorageKind":
        """Classify a storage path by its prefix"""
        if path.startswith(("http://", "https://")):
            return cls.REMOTE_URL
        if path.startswith(f"{settings.OBJECT_KEY_PREFIX}/"):
            return cls.OBJECT_KEY
        return cls.LOCAL_PATH

class Document(Base):
    """File attached to a case"""
    __tablename__ = "documents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # File information
    name = Column(String(255), nullable=False)
    description = Column(Text)
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)  # Size in bytes
    storage_path = Column(String(1000), nullable=False)  # object key, local path or URL
    storage_kind = Column(String(20), nullable=False, default=StorageKind.OBJECT_KEY.value)

    category = Column(String(50), default=DocumentCategory.OTHER.value)
    tags = Column(JSON)

    # Case association
    case_id = Column(UUID(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)

    # Audit fields
    uploaded_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    case = relationship("Case", back_populates="documents")
    uploader = relationship("User", foreign_keys=[uploaded_by])

    @property
    def kind(self) -> StorageKind:
        """Storage kind tag, classified from the path for rows without one"""
        if self.storage_kind:
            return StorageKind(self.storage_kind)
        return StorageKind.from_path(self.storage_path or "")

    @property
    def display_name(self) -> str:
        return self.name or str(self.id)

    def __repr__(self):
        return f"<Document(id={self.id}, name='{self.name}', case_id={self.case_id})>"
