"""
Attachment collection: resolve case documents to (filename, bytes) pairs
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence

import httpx
import structlog

from core.config import settings
from core.exceptions import AttachmentFetchError
from models.document import StorageKind
from services.blob_store_service import BlobStoreService

logger = structlog.get_logger()

@dataclass
class Attachment:
    """Document content ready to be attached to a mail"""
    filename: str
    content: bytes
    content_type: Optional[str] = None

class AttachmentService:
    """
    Fetches document bytes from object storage, local disk or remote URLs

    Documents are processed one after another in list order. At most
    MAX_DOC_ATTACHMENTS attachments are returned; documents that cannot be
    fetched are logged and skipped, so collect() itself never fails.
    """

    def __init__(
        self,
        blob_store: Optional[BlobStoreService] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_attachments: Optional[int] = None
    ):
        self.blob_store = blob_store or BlobStoreService()
        self._http_client = http_client
        self.max_attachments = max_attachments if max_attachments is not None else settings.MAX_DOC_ATTACHMENTS

    async def collect(self, documents: Sequence[Any]) -> List[Attachment]:
        if len(documents) > self.max_attachments:
            logger.warning(
                "Too many documents, only the first ones are attached",
                document_count=len(documents),
                max_attachments=self.max_attachments
            )

        if self._http_client is not None:
            return await self._collect(documents, self._http_client)

        async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
            return await self._collect(documents, client)

    async def _collect(self, documents: Sequence[Any], client: httpx.AsyncClient) -> List[Attachment]:
        attachments: List[Attachment] = []
        for document in documents:
            if len(attachments) >= self.max_attachments:
                break
            if not document.storage_path:
                continue

            try:
                content = await self._fetch(document, client)
            except AttachmentFetchError as e:
                logger.warning(
                    "Document could not be loaded, skipping attachment",
                    document_id=str(document.id),
                    path=document.storage_path,
                    error=e.underlying_error or e.message
                )
                continue

            attachments.append(Attachment(
                filename=document.display_name,
                content=content,
                content_type=document.mime_type
            ))
        return attachments

    async def _fetch(self, document, client: httpx.AsyncClient) -> bytes:
        """Bytes of one document; every failure surfaces as AttachmentFetchError"""
        path = document.storage_path
        kind = document.kind
        try:
            if kind is StorageKind.REMOTE_URL:
                response = await client.get(path)
                response.raise_for_status()
                return response.content
            if kind is StorageKind.OBJECT_KEY:
                return await self.blob_store.get_object(path)
            return await asyncio.to_thread(Path(path).read_bytes)
        except Exception as e:
            raise AttachmentFetchError(
                f"Failed to fetch document {document.id}",
                error_code="ATTACHMENT_FETCH_FAILED",
                details={"document_id": str(document.id), "storage_kind": kind.value}
            ) from e
