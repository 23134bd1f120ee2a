"""
Document schemas for API requests and responses
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from schemas.base import BaseResponse

class DocumentResponse(BaseModel):
    """Schema for document responses"""
    id: UUID
    name: str
    description: Optional[str] = Field(None, alias="beschreibung")
    mime_type: str = Field(..., alias="dateityp")
    size: int = Field(..., alias="groesse")
    storage_path: str = Field(..., alias="pfad")
    storage_kind: str
    category: Optional[str] = Field(None, alias="kategorie")
    tags: List[str] = Field(default_factory=list)
    case_id: UUID = Field(..., alias="fall")
    uploaded_by: UUID = Field(..., alias="hochgeladenVon")
    uploaded_at: Optional[datetime] = Field(None, alias="hochgeladenAm")

    class Config:
        populate_by_name = True
        from_attributes = True

    @classmethod
    def from_document(cls, document) -> "DocumentResponse":
        return cls(
            id=document.id,
            name=document.name,
            description=document.description,
            mime_type=document.mime_type,
            size=document.size,
            storage_path=document.storage_path,
            storage_kind=document.kind.value,
            category=document.category,
            tags=document.tags or [],
            case_id=document.case_id,
            uploaded_by=document.uploaded_by,
            uploaded_at=document.uploaded_at
        )

class DocumentEnvelope(BaseResponse):
    """Response wrapping a single document"""
    dokument: DocumentResponse
    url: Optional[str] = Field(None, description="Presigned download URL")

class DocumentListResponse(BaseResponse):
    """Response listing a case's documents"""
    dokumente: List[DocumentResponse]
