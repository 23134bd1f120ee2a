"""
Document intake: upload to object storage, listing, download links, deletion
"""

import asyncio
from pathlib import Path
from typing import Optional, List, Dict, Any, Tuple
from uuid import UUID
from datetime import datetime, UTC

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from models.document import Document, DocumentCategory, StorageKind
from core.config import settings
from core.exceptions import CaseManagementException, NotFoundError, PermissionError, ValidationError
from core.auth import is_admin
from services.blob_store_service import BlobStoreService
from services.case_service import CaseService, generate_client_number

logger = structlog.get_logger()

VALID_CATEGORIES = {c.value for c in DocumentCategory}

def parse_tags(tags: Optional[str]) -> List[str]:
    """Comma-separated tag string -> trimmed, non-empty tags"""
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]

class DocumentService:
    """Service for case documents"""

    def __init__(
        self,
        db: AsyncSession,
        blob_store: Optional[BlobStoreService] = None,
        case_service: Optional[CaseService] = None
    ):
        self.db = db
        self.blob_store = blob_store or BlobStoreService()
        self.case_service = case_service or CaseService(db)

    def validate_upload(self, content_type: Optional[str], size: int, category: Optional[str]) -> str:
        """
        Check type, size and category of an upload

        Returns:
            The effective category

        Raises:
            ValidationError: If any check fails
        """
        if content_type not in settings.ALLOWED_MIME_TYPES:
            raise ValidationError(
                "Ungültiger Dateityp. Erlaubt sind nur PDF, Bilder, Word und Excel Dateien.",
                error_code="INVALID_FILE_TYPE",
                details={"content_type": content_type}
            )
        if size > settings.MAX_FILE_SIZE:
            raise ValidationError(
                "Datei ist zu groß",
                error_code="FILE_TOO_LARGE",
                details={"size": size, "max_size": settings.MAX_FILE_SIZE}
            )
        if size == 0:
            raise ValidationError("Keine Datei hochgeladen", error_code="EMPTY_FILE")

        category = category or DocumentCategory.OTHER.value
        if category not in VALID_CATEGORIES:
            raise ValidationError(
                f"Ungültige Kategorie: {category}",
                error_code="INVALID_CATEGORY",
                details={"allowed": sorted(VALID_CATEGORIES)}
            )
        return category

    async def upload_document(
        self,
        case_id: UUID,
        content: bytes,
        filename: str,
        content_type: Optional[str],
        current_user: Dict[str, Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[str] = None
    ) -> Document:
        """
        Store an uploaded file and attach it to a case

        The object key follows the hierarchical layout built by
        BlobStoreService.build_object_key.

        Raises:
            ValidationError: On disallowed type, size or category
            NotFoundError: If the case does not exist
            PermissionError: If the user may not access the case
        """
        category = self.validate_upload(content_type, len(content), category)

        case = await self.case_service.get_case_with_relations(case_id)
        self.case_service.ensure_access(case, current_user)

        practitioner_number = (case.owner.practitioner_number if case.owner else None) or case.practitioner_number
        client_number = (case.client_data or {}).get("mandantennummer") or generate_client_number(case.sequence_number or 1)
        document_name = name or filename

        key = BlobStoreService.build_object_key(
            practitioner_number,
            case.sequence_number,
            client_number,
            category,
            document_name
        )

        await self.blob_store.ensure_bucket()
        await self.blob_store.put_object(key, content, content_type)

        try:
            document = Document(
                name=document_name,
                description=description,
                mime_type=content_type,
                size=len(content),
                storage_path=key,
                storage_kind=StorageKind.from_path(key).value,
                case_id=case.id,
                uploaded_by=UUID(str(current_user["id"])),
                category=category,
                tags=parse_tags(tags)
            )
            self.db.add(document)
            case.updated_at = datetime.now(UTC)
            await self.db.commit()

            logger.info("Document uploaded", document_id=str(document.id), case_id=str(case.id), key=key)
            return document

        except Exception as e:
            await self.db.rollback()
            logger.error("Failed to save document record", case_id=str(case_id), key=key, error=str(e))
            raise CaseManagementException(f"Failed to save document: {str(e)}") from e

    async def list_case_documents(self, case_id: UUID, current_user: Dict[str, Any]) -> List[Document]:
        case = await self.case_service.get_case(case_id)
        self.case_service.ensure_access(case, current_user)
        return await self.case_service.list_documents(case_id)

    async def _get_accessible_document(self, document_id: UUID, current_user: Dict[str, Any]) -> Document:
        result = await self.db.execute(select(Document).where(Document.id == document_id))
        document = result.scalar_one_or_none()
        if document is None:
            raise NotFoundError(
                "Dokument nicht gefunden",
                error_code="DOCUMENT_NOT_FOUND",
                details={"document_id": str(document_id)}
            )

        case = await self.case_service.get_case(document.case_id)
        self.case_service.ensure_access(case, current_user)
        return document

    async def get_document(self, document_id: UUID, current_user: Dict[str, Any]) -> Tuple[Document, Optional[str]]:
        """
        Get a document and a link to its content

        Object-stored documents get a presigned URL (24 h by default), remote
        documents their own URL, local files none.
        """
        document = await self._get_accessible_document(document_id, current_user)

        kind = document.kind
        if kind is StorageKind.OBJECT_KEY:
            url = await self.blob_store.presigned_get(document.storage_path)
        elif kind is StorageKind.REMOTE_URL:
            url = document.storage_path
        else:
            url = None
        return document, url

    async def delete_document(self, document_id: UUID, current_user: Dict[str, Any]) -> None:
        """
        Remove a document's stored bytes and its case reference

        Admins, the case owner and the uploader may delete; an assignee only
        if they uploaded the document.
        """
        result = await self.db.execute(select(Document).where(Document.id == document_id))
        document = result.scalar_one_or_none()
        if document is None:
            raise NotFoundError(
                "Dokument nicht gefunden",
                error_code="DOCUMENT_NOT_FOUND",
                details={"document_id": str(document_id)}
            )

        case = await self.case_service.get_case(document.case_id)
        user_id = str(current_user.get("id"))
        if not (
            is_admin(current_user)
            or str(case.created_by) == user_id
            or str(document.uploaded_by) == user_id
        ):
            raise PermissionError(
                "Keine Berechtigung zum Löschen dieses Dokuments",
                error_code="DOCUMENT_DELETE_DENIED",
                details={"document_id": str(document_id)}
            )

        kind = document.kind
        if kind is StorageKind.OBJECT_KEY:
            await self.blob_store.delete_object(document.storage_path)
        elif kind is StorageKind.LOCAL_PATH:
            path = Path(document.storage_path)
            await asyncio.to_thread(path.unlink, missing_ok=True)

        try:
            await self.db.delete(document)
            case.updated_at = datetime.now(UTC)
            await self.db.commit()
            logger.info("Document deleted", document_id=str(document_id), case_id=str(case.id))

        except Exception as e:
            await self.db.rollback()
            logger.error("Failed to delete document", document_id=str(document_id), error=str(e))
            raise CaseManagementException(f"Failed to delete document: {str(e)}") from e
