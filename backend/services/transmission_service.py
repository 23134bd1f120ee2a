"""
Case transmission: send the case packet to the back office and a confirmation
copy to the practitioner
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import RenderError, PrimarySendError, ConfirmationSendError
from models.case import CaseStatus
from services.attachment_service import Attachment, AttachmentService
from services.case_service import CaseService
from services.email_service import EmailService, MailAttachment
from services.html_summary_service import HtmlSummaryService
from services.pdf_summary_service import PdfSummaryService

logger = structlog.get_logger()

PRIMARY_FAILURE_MESSAGE = "Fehler beim Senden der E-Mail an Rechtly."
CONFIRMATION_FAILURE_MESSAGE = (
    "Fall wurde an Rechtly gesendet, die Bestätigung an den Gutachter ist fehlgeschlagen."
)

@dataclass
class TransmissionResult:
    """Case bookkeeping after a successful transmission"""
    status: CaseStatus
    transmission_count: int

def copy_suffix(transmission_count: int) -> str:
    """Subject suffix marking repeated transmissions"""
    if transmission_count > 1:
        return f" - Kopie {transmission_count - 1}"
    return ""

class TransmissionService:
    """Orchestrates rendering, attachment collection, bookkeeping and both mails"""

    def __init__(
        self,
        case_service: CaseService,
        pdf_renderer: Optional[PdfSummaryService] = None,
        html_renderer: Optional[HtmlSummaryService] = None,
        attachment_service: Optional[AttachmentService] = None,
        email_service: Optional[EmailService] = None
    ):
        self.case_service = case_service
        self.pdf_renderer = pdf_renderer or PdfSummaryService()
        self.html_renderer = html_renderer or HtmlSummaryService()
        self.attachment_service = attachment_service or AttachmentService()
        self.email_service = email_service or EmailService()

    def _mail_attachments(self, pdf: bytes, documents: List[Attachment]) -> List[MailAttachment]:
        """Summary PDF, document attachments in order, then the inline logo"""
        attachments = [MailAttachment(
            filename=settings.SUMMARY_PDF_FILENAME,
            content=pdf,
            content_type="application/pdf"
        )]
        attachments.extend(
            MailAttachment(filename=a.filename, content=a.content, content_type=a.content_type)
            for a in documents
        )
        attachments.append(MailAttachment(
            filename=settings.LOGO_FILE.name,
            path=settings.LOGO_FILE,
            content_id=settings.LOGO_CONTENT_ID
        ))
        return attachments

    async def send_case(self, case_id: UUID, current_user: Dict[str, Any]) -> TransmissionResult:
        """
        Transmit a case

        The counter and status are persisted before the mails go out, so a
        failed send still counts as a transmission.

        Args:
            case_id: Case UUID
            current_user: Token payload of the requesting user

        Returns:
            New status and transmission count

        Raises:
            NotFoundError: If the case does not exist
            PermissionError: If the user may not access the case
            RenderError: If the PDF or HTML summary cannot be built; nothing is sent
            PrimarySendError: If the back-office mail fails; no confirmation is attempted
            ConfirmationSendError: If only the confirmation mail fails
        """
        case = await self.case_service.get_case_with_relations(case_id)
        self.case_service.ensure_access(case, current_user)
        documents = await self.case_service.list_documents(case_id)

        try:
            pdf = await self.pdf_renderer.render(case, documents)
            html = self.html_renderer.render(case, documents)
        except RenderError:
            raise
        except Exception as e:
            logger.error("Failed to render case summary", case_id=str(case_id), error=str(e))
            raise RenderError(
                "Fallübersicht konnte nicht erstellt werden",
                error_code="SUMMARY_RENDER_FAILED",
                details={"case_id": str(case_id)}
            ) from e

        document_attachments = await self.attachment_service.collect(documents)

        updated = await self.case_service.increment_transmission_counter(case_id)
        transmission_count = updated.transmission_count
        suffix = copy_suffix(transmission_count)

        owner = case.owner
        first_name = (owner.first_name if owner else None) or ""
        last_name = (owner.last_name if owner else None) or ""

        try:
            await self.email_service.send_email(
                settings.BACKOFFICE_EMAIL,
                f"Neuer Fall von {first_name} {last_name}{suffix}",
                html,
                self._mail_attachments(pdf, document_attachments)
            )
        except Exception as e:
            logger.error("Failed to send case to back office", case_id=str(case_id), error=str(e))
            raise PrimarySendError(
                PRIMARY_FAILURE_MESSAGE,
                error_code="PRIMARY_SEND_FAILED",
                details={"case_id": str(case_id), "primary_sent": False}
            ) from e

        owner_email = owner.email if owner else None
        if owner_email:
            try:
                await self.email_service.send_email(
                    owner_email,
                    f"Bestätigung: Ihr Fall wurde an Rechtly gesendet{suffix}",
                    html,
                    self._mail_attachments(pdf, document_attachments)
                )
            except Exception as e:
                logger.error("Failed to send confirmation to practitioner", case_id=str(case_id), error=str(e))
                raise ConfirmationSendError(
                    CONFIRMATION_FAILURE_MESSAGE,
                    error_code="CONFIRMATION_SEND_FAILED",
                    details={"case_id": str(case_id), "primary_sent": True}
                ) from e
        else:
            logger.info("Case owner has no email, confirmation skipped", case_id=str(case_id))

        logger.info(
            "Case transmitted",
            case_id=str(case_id),
            transmission_count=transmission_count,
            document_attachments=len(document_attachments)
        )
        return TransmissionResult(status=updated.status, transmission_count=transmission_count)
