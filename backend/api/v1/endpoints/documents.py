"""
Document management API endpoints
"""

from fastapi import APIRouter, Depends, UploadFile, File, Form, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Dict, Any
from uuid import UUID
import structlog

from core.config import settings
from core.database import get_db
from core.auth import get_current_user
from schemas.base import BaseResponse
from schemas.document import DocumentResponse, DocumentEnvelope, DocumentListResponse
from services.document_service import DocumentService

logger = structlog.get_logger()
router = APIRouter()

def get_document_service(db: AsyncSession = Depends(get_db)) -> DocumentService:
    """Dependency to get document service"""
    return DocumentService(db)

@router.post("", response_model=DocumentEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    case_id: UUID = Form(..., alias="fallId"),
    name: Optional[str] = Form(None),
    beschreibung: Optional[str] = Form(None),
    kategorie: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service)
):
    """
    Upload a document to a case

    - **file**: PDF, image, Word or Excel file up to 10MB
    - **fallId**: ID of the case the document belongs to
    - **name**: Display name, defaults to the file name
    - **kategorie**: Document category, defaults to "sonstiges"
    - **tags**: Comma-separated tags
    """
    # one byte past the limit is enough for the size check to reject it
    content = await file.read(settings.MAX_FILE_SIZE + 1)
    logger.info(
        "Upload request received",
        filename=file.filename,
        content_type=file.content_type,
        size=len(content),
        case_id=str(case_id)
    )

    document = await document_service.upload_document(
        case_id,
        content,
        file.filename or "dokument",
        file.content_type,
        current_user,
        name=name,
        description=beschreibung,
        category=kategorie,
        tags=tags
    )
    return DocumentEnvelope(
        nachricht="Dokument erfolgreich hochgeladen",
        dokument=DocumentResponse.from_document(document)
    )

@router.get("/case/{case_id}", response_model=DocumentListResponse)
async def get_case_documents(
    case_id: UUID,
    current_user: Dict[str, Any] = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service)
):
    """List a case's documents in upload order"""
    documents = await document_service.list_case_documents(case_id, current_user)
    return DocumentListResponse(dokumente=[DocumentResponse.from_document(d) for d in documents])

@router.get("/{document_id}", response_model=DocumentEnvelope)
async def get_document(
    document_id: UUID,
    current_user: Dict[str, Any] = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service)
):
    """Get a document with a time-limited download URL"""
    document, url = await document_service.get_document(document_id, current_user)
    return DocumentEnvelope(dokument=DocumentResponse.from_document(document), url=url)

@router.delete("/{document_id}", response_model=BaseResponse)
async def delete_document(
    document_id: UUID,
    current_user: Dict[str, Any] = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service)
):
    """Delete a document and its stored file"""
    await document_service.delete_document(document_id, current_user)
    return BaseResponse(nachricht="Dokument erfolgreich gelöscht")
