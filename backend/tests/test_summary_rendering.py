"""
Tests for the PDF and HTML case summaries
"""

from datetime import datetime, UTC
from unittest.mock import patch

import pytest

from conftest import make_case, make_document
from core.exceptions import RenderError
from services.case_summary import build_summary_sections, format_report_date, NO_DATA, NO_DOCUMENTS
from services.html_summary_service import HtmlSummaryService
from services.pdf_summary_service import PdfSummaryService

def _pdf_lines(case, documents):
    lines = []
    for section in build_summary_sections(case, documents):
        lines.append(section.title)
        lines.extend(PdfSummaryService._section_lines(section))
    return lines

class TestSummarySections:

    def test_section_order(self):
        titles = [s.title for s in build_summary_sections(make_case(), [])]
        assert titles == [
            "Gutachter",
            "Fallinformationen",
            "Mandant",
            "Schaden",
            "Erste Partei",
            "Zweite Partei",
            "Datenschutz angenommen?",
            "Hochgeladene Dokumente",
        ]

    def test_empty_markers_in_pdf_lines(self):
        case = make_case(client_data={}, damage=None)
        lines = _pdf_lines(case, [])

        # Mandant, Schaden, Erste Partei, Zweite Partei
        assert lines.count(f"{NO_DATA}.") == 4
        assert NO_DOCUMENTS in lines
        assert "Nein" in lines

    def test_sub_record_lines_follow_field_order(self):
        case = make_case(first_party={"kennzeichen": "B-XY 1", "vorname": "Hans", "versicherung": None})
        lines = _pdf_lines(case, [])

        start = lines.index("Erste Partei") + 1
        assert lines[start:start + 2] == ["vorname: Hans", "kennzeichen: B-XY 1"]

    def test_practitioner_and_document_lines(self):
        case = make_case(privacy_accepted=True)
        documents = [make_document(name="a.pdf"), make_document(name="b.pdf")]
        lines = _pdf_lines(case, documents)

        assert "Max Mustermann" in lines
        assert "E-Mail: max.mustermann@example.com" in lines
        assert "Gutachternummer: 25001" in lines
        assert lines[-2:] == ["- a.pdf", "- b.pdf"]
        assert "Ja" in lines

    def test_report_dates_use_berlin_time(self):
        # 22:30 UTC on 31 March 2024 is already 1 April in Berlin (CEST)
        assert format_report_date(datetime(2024, 3, 31, 22, 30, tzinfo=UTC)) == "1.4.2024"
        assert format_report_date(datetime(2024, 12, 5, 9, 0)) == "5.12.2024"
        assert format_report_date(None) == ""

class TestHtmlSummary:

    def test_empty_case_markers(self):
        case = make_case(client_data=None)
        html = HtmlSummaryService().render(case, [])

        assert html.count('<tr><td colspan="2">Keine Daten</td></tr>') == 4
        assert "Keine Dokumente vorhanden." in html
        assert 'src="cid:logo"' in html

    def test_values_are_escaped(self):
        case = make_case(damage={"beschreibung": "<script>alert(1)</script>"})
        html = HtmlSummaryService().render(case, [make_document(name="a&b.pdf")])

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "a&amp;b.pdf" in html

    def test_sections_in_pdf_order(self):
        html = HtmlSummaryService().render(make_case(), [])
        positions = [html.index(title) for title in (
            "Gutachterdaten", "Fallinformationen", "Mandantendaten", "Schadeninformationen",
            "Erste Partei", "Zweite Partei", "Datenschutz angenommen?", "Hochgeladene Dokumente"
        )]
        assert positions == sorted(positions)

class TestPdfSummary:

    @pytest.mark.asyncio
    async def test_render_produces_pdf(self):
        pdf = await PdfSummaryService().render(make_case(), [make_document()])
        assert pdf.startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_render_is_deterministic(self):
        case = make_case()
        documents = [make_document(name="gutachten.pdf")]
        service = PdfSummaryService()

        first = await service.render(case, documents)
        second = await service.render(case, documents)

        assert first == second

    @pytest.mark.asyncio
    async def test_missing_logo_is_skipped(self, tmp_path):
        service = PdfSummaryService(logo_path=tmp_path / "fehlt.png")

        with patch("services.pdf_summary_service.logger") as logger:
            pdf = await service.render(make_case(), [])

        assert pdf.startswith(b"%PDF")
        logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_build_failure_raises_render_error(self):
        service = PdfSummaryService()

        with patch.object(PdfSummaryService, "_build_pdf", side_effect=OSError("disk full")):
            with pytest.raises(RenderError) as exc_info:
                await service.render(make_case(), [])

        assert exc_info.value.underlying_error == "disk full"
        assert exc_info.value.error_code == "PDF_RENDER_FAILED"
