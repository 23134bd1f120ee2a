"""
HTML case summary used as the email body
"""

from html import escape
from typing import Any, List, Sequence

from core.config import settings
from services.case_summary import build_summary_sections, SummarySection

HEADER_STYLE = "background:#f5f5f5; text-align:left; padding:8px;"
TABLE_STYLE = "width:100%; border-collapse:collapse; margin-bottom:24px;"

# Section titles as shown in the mail
HTML_TITLES = {
    "Gutachter": "Gutachterdaten",
    "Mandant": "Mandantendaten",
    "Schaden": "Schadeninformationen",
}

class HtmlSummaryService:
    """Renders the summary tables; the logo is referenced by content id"""

    def render(self, case, documents: Sequence[Any]) -> str:
        parts = [
            '<div style="font-family: Arial, sans-serif;">',
            '<div style="text-align:center; margin-bottom:24px;">',
            f'<img src="cid:{escape(settings.LOGO_CONTENT_ID)}" alt="Logo" style="width:160px; margin-bottom:8px;" />',
            '<h2 style="color:#1a237e;">Fallübersicht</h2>',
            '</div>',
        ]
        for section in build_summary_sections(case, documents):
            parts.append(self._table(section))
        parts.append('</div>')
        return "\n".join(parts)

    def _table(self, section: SummarySection) -> str:
        title = escape(HTML_TITLES.get(section.title, section.title))

        # single-value sections render inline next to the header
        if section.lines and section.empty_text is None:
            value = escape(", ".join(section.lines))
            return (
                f'<table style="{TABLE_STYLE}">'
                f'<tr><th style="{HEADER_STYLE}">{title}</th><td>{value}</td></tr>'
                '</table>'
            )

        rows: List[str] = [f'<tr><th colspan="2" style="{HEADER_STYLE}">{title}</th></tr>']
        if section.rows:
            rows.extend(
                f"<tr><td>{escape(label)}</td><td>{escape(value)}</td></tr>"
                for label, value in section.rows
            )
        elif section.lines:
            rows.extend(f'<tr><td colspan="2">{escape(line)}</td></tr>' for line in section.lines)
        elif section.empty_text:
            rows.append(f'<tr><td colspan="2">{escape(section.empty_text)}</td></tr>')

        return f'<table style="{TABLE_STYLE}">' + "".join(rows) + '</table>'
