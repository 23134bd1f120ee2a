"""
Outbound mail over SMTP
"""

import asyncio
import mimetypes
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import structlog

from core.config import settings
from core.exceptions import EmailDeliveryError

logger = structlog.get_logger()

@dataclass
class MailAttachment:
    """
    A mail attachment given either as bytes or as a file path

    Path attachments with a content_id are embedded inline so the HTML body
    can reference them as cid:<content_id>.
    """
    filename: str
    content: Optional[bytes] = None
    path: Optional[Path] = None
    content_id: Optional[str] = None
    content_type: Optional[str] = None

def _mime_parts(filename: str, content_type: Optional[str]) -> Tuple[str, str]:
    mime = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
    maintype, _, subtype = mime.partition("/")
    return maintype, subtype or "octet-stream"

class EmailService:
    """Sends HTML mails with attachments from the configured sender address"""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.sender = sender or settings.EMAIL_FROM

    def build_message(
        self,
        to: str,
        subject: str,
        html: str,
        attachments: Sequence[MailAttachment] = ()
    ) -> EmailMessage:
        """
        Assemble the MIME message

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body
            attachments: Content and path attachments, in order

        Returns:
            The message; unreadable path attachments are left out
        """
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(html, subtype="html")

        inline: List[Tuple[MailAttachment, bytes]] = []
        regular: List[Tuple[MailAttachment, bytes]] = []
        for attachment in attachments:
            data = attachment.content
            if data is None and attachment.path is not None:
                try:
                    data = Path(attachment.path).read_bytes()
                except OSError as e:
                    logger.warning("Attachment file could not be read, skipping", path=str(attachment.path), error=str(e))
                    continue
            if data is None:
                continue
            if attachment.content_id and attachment.path is not None:
                inline.append((attachment, data))
            else:
                regular.append((attachment, data))

        # related parts first, the message becomes multipart/mixed on the first attachment
        for attachment, data in inline:
            maintype, subtype = _mime_parts(attachment.filename, attachment.content_type)
            message.add_related(
                data,
                maintype=maintype,
                subtype=subtype,
                cid=f"<{attachment.content_id}>",
                filename=attachment.filename,
                disposition="inline"
            )
        for attachment, data in regular:
            maintype, subtype = _mime_parts(attachment.filename, attachment.content_type)
            message.add_attachment(data, maintype=maintype, subtype=subtype, filename=attachment.filename)

        return message

    def _deliver(self, message: EmailMessage) -> None:
        if settings.SMTP_USE_TLS:
            smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=60)
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=60)

        with smtp:
            if not settings.SMTP_USE_TLS and settings.SMTP_STARTTLS:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)

    async def send_email(
        self,
        to: str,
        subject: str,
        html: str,
        attachments: Sequence[MailAttachment] = ()
    ) -> None:
        """
        Send one HTML mail

        Raises:
            EmailDeliveryError: If the transport fails
        """
        message = await asyncio.to_thread(self.build_message, to, subject, html, attachments)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email", to=to, subject=subject, error=str(e))
            raise EmailDeliveryError(
                f"Failed to send email to {to}: {e}",
                error_code="EMAIL_DELIVERY_FAILED",
                details={"to": to}
            ) from e

        logger.info("Email sent", to=to, subject=subject, attachment_count=len(attachments))
