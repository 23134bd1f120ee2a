"""
Section content shared by the PDF and HTML case summaries
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from core.config import settings

NO_DATA = "Keine Daten"
NO_DOCUMENTS = "Keine Dokumente vorhanden."

CLIENT_FIELDS = ("vorname", "nachname", "email", "telefon", "adresse", "geburtsdatum", "mandantennummer")
FIRST_PARTY_FIELDS = ("vorname", "nachname", "versicherung", "kennzeichen", "fahrzeughalter", "kfzModell", "beteiligungsposition")
SECOND_PARTY_FIELDS = ("vorname", "nachname", "versicherung", "kennzeichen", "beteiligungsposition")
DAMAGE_FIELDS = ("schadenstyp", "schadensschwere", "beschreibung", "unfallort", "unfallzeit")

@dataclass
class SummarySection:
    """One titled block of the summary"""
    title: str
    rows: List[Tuple[str, str]] = field(default_factory=list)
    # Shown instead of rows when there are none
    empty_text: Optional[str] = None
    # Rows rendered as plain lines without labels
    lines: List[str] = field(default_factory=list)

def format_report_date(value: Optional[datetime]) -> str:
    """d.m.yyyy in the report time zone; naive datetimes are taken as UTC"""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    local = value.astimezone(ZoneInfo(settings.REPORT_TIMEZONE))
    return f"{local.day}.{local.month}.{local.year}"

def sub_record_rows(record: Optional[Dict[str, Any]], field_order: Sequence[str]) -> List[Tuple[str, str]]:
    """key/value rows for the present keys, known fields first in their fixed order"""
    if not record:
        return []
    keys = [k for k in field_order if k in record]
    keys += [k for k in record if k not in field_order]
    return [(k, str(record[k])) for k in keys if record[k] is not None]

def build_summary_sections(case, documents: Sequence[Any]) -> List[SummarySection]:
    """Ordered summary sections for a case and its documents"""
    owner = case.owner
    first_name = (owner.first_name if owner else None) or ""
    last_name = (owner.last_name if owner else None) or ""

    sections = [
        SummarySection("Gutachter", rows=[
            ("Gutachter", f"{first_name} {last_name}"),
            ("E-Mail", (owner.email if owner else None) or ""),
            ("Gutachternummer", str(case.practitioner_number or "")),
        ]),
        SummarySection("Fallinformationen", rows=[
            ("Aktenzeichen", case.file_number or ""),
            ("Fall-ID", str(case.id)),
            ("Erstellt am", format_report_date(case.case_date)),
            ("Zuletzt geändert", format_report_date(case.updated_at)),
        ]),
    ]

    for title, record, field_order in (
        ("Mandant", case.client_data, CLIENT_FIELDS),
        ("Schaden", case.damage, DAMAGE_FIELDS),
        ("Erste Partei", case.first_party, FIRST_PARTY_FIELDS),
        ("Zweite Partei", case.second_party, SECOND_PARTY_FIELDS),
    ):
        sections.append(SummarySection(title, rows=sub_record_rows(record, field_order), empty_text=NO_DATA))

    sections.append(SummarySection(
        "Datenschutz angenommen?",
        lines=["Ja" if case.privacy_accepted else "Nein"]
    ))
    sections.append(SummarySection(
        "Hochgeladene Dokumente",
        lines=[d.display_name for d in documents],
        empty_text=NO_DOCUMENTS
    ))
    return sections
