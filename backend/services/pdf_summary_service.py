"""
PDF case summary ("Fallübersicht") rendering with reportlab
"""

import asyncio
import io
from typing import Any, List, Sequence
from xml.sax.saxutils import escape

import structlog
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.utils import ImageReader
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer
from reportlab.platypus.flowables import Image as ReportLabImage

from core.config import settings
from core.exceptions import RenderError
from services.case_summary import build_summary_sections, SummarySection

logger = structlog.get_logger()

LOGO_WIDTH = 120

class PdfSummaryService:
    """Renders a case and its documents into a one-file PDF summary"""

    def __init__(self, logo_path=None):
        self.logo_path = logo_path if logo_path is not None else settings.LOGO_FILE

    async def render(self, case, documents: Sequence[Any]) -> bytes:
        """
        Render the summary PDF

        The document is built on a worker thread. Output is byte-stable for
        identical input: no creation timestamp or random document id is
        embedded.

        Raises:
            RenderError: If building the PDF fails
        """
        try:
            story = self._build_story(case, documents)
            return await asyncio.to_thread(self._build_pdf, story)
        except Exception as e:
            logger.error("Failed to render case summary PDF", case_id=str(case.id), error=str(e))
            raise RenderError(
                "Fallübersicht konnte nicht erstellt werden",
                error_code="PDF_RENDER_FAILED",
                details={"case_id": str(case.id)}
            ) from e

    def _build_pdf(self, story: List[Any]) -> bytes:
        pdf_buffer = io.BytesIO()
        try:
            doc = SimpleDocTemplate(
                pdf_buffer,
                pagesize=A4,
                rightMargin=40,
                leftMargin=40,
                topMargin=40,
                bottomMargin=40,
                title="Fallübersicht",
                invariant=1
            )
            doc.build(story)
            return pdf_buffer.getvalue()
        finally:
            pdf_buffer.close()

    def _logo(self):
        """Logo flowable, or None when the image cannot be loaded"""
        try:
            reader = ImageReader(str(self.logo_path))
            width, height = reader.getSize()
            return ReportLabImage(
                str(self.logo_path),
                width=LOGO_WIDTH,
                height=LOGO_WIDTH * height / width
            )
        except Exception as e:
            logger.warning("Logo could not be loaded, rendering without it", path=str(self.logo_path), error=str(e))
            return None

    def _build_story(self, case, documents: Sequence[Any]) -> List[Any]:
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            'SummaryTitle',
            parent=styles['Heading1'],
            fontSize=18,
            spaceAfter=12,
            alignment=TA_CENTER
        )
        header_style = ParagraphStyle(
            'SectionHeader',
            parent=styles['Normal'],
            fontName='Helvetica-Bold',
            fontSize=12,
            spaceBefore=6,
            spaceAfter=2
        )
        body_style = ParagraphStyle('SectionBody', parent=styles['Normal'], fontSize=11)

        story = []
        logo = self._logo()
        if logo is not None:
            story.append(logo)
            story.append(Spacer(1, 12))

        story.append(Paragraph("Fallübersicht", title_style))
        story.append(Spacer(1, 12))

        for section in build_summary_sections(case, documents):
            header = section.title if section.title.endswith("?") else f"{section.title}:"
            story.append(Paragraph(escape(header), header_style))
            for line in self._section_lines(section):
                story.append(Paragraph(escape(line), body_style))
            story.append(Spacer(1, 10))

        return story

    @staticmethod
    def _section_lines(section: SummarySection) -> List[str]:
        if section.title == "Gutachter":
            # name line first, then labelled contact lines
            name, *rest = section.rows
            return [name[1]] + [f"{label}: {value}" for label, value in rest]
        if section.rows:
            return [f"{label}: {value}" for label, value in section.rows]
        if section.lines:
            if section.empty_text is not None:
                return [f"- {line}" for line in section.lines]
            return list(section.lines)
        if section.empty_text:
            text = section.empty_text
            return [text if text.endswith(".") else f"{text}."]
        return []
