"""
Case-related schemas for API requests and responses

Field names of the sub-records are the portal's wire names; top-level case
fields use English attribute names with the portal's JSON names as aliases.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any, List
from datetime import datetime
from uuid import UUID

from models.case import CaseStatus
from schemas.base import BaseResponse
from schemas.document import DocumentResponse

# Sub-records
class ClientData(BaseModel):
    """Client ("Mandant") details"""
    vorname: Optional[str] = None
    nachname: Optional[str] = None
    email: Optional[str] = None
    telefon: Optional[str] = None
    adresse: Optional[str] = None
    geburtsdatum: Optional[str] = None
    mandantennummer: Optional[str] = None

class FirstParty(BaseModel):
    """First party to the incident"""
    vorname: Optional[str] = None
    nachname: Optional[str] = None
    versicherung: Optional[str] = None
    kennzeichen: Optional[str] = None
    fahrzeughalter: Optional[str] = None
    kfzModell: Optional[str] = None
    beteiligungsposition: Optional[str] = None

class SecondParty(BaseModel):
    """Second party to the incident"""
    vorname: Optional[str] = None
    nachname: Optional[str] = None
    versicherung: Optional[str] = None
    kennzeichen: Optional[str] = None
    beteiligungsposition: Optional[str] = None

class DamageData(BaseModel):
    """Damage ("Schaden") details"""
    schadenstyp: Optional[str] = None
    schadensschwere: Optional[str] = None
    beschreibung: Optional[str] = None
    unfallort: Optional[str] = None
    unfallzeit: Optional[str] = None

def dump_sub_record(record: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
    """Serialize a sub-record in field order, leaving out unset values"""
    if record is None:
        return None
    return record.model_dump(exclude_none=True)

# Request schemas
class CaseCreate(BaseModel):
    """Schema for creating a new case"""
    title: str = Field(..., alias="fallname", min_length=1, max_length=200, description="Case name")
    file_number: Optional[str] = Field(None, alias="aktenzeichen", max_length=50, description="Case-file number, generated when omitted")
    status: Optional[CaseStatus] = Field(None, description="Initial status")
    case_date: Optional[datetime] = Field(None, alias="datum", description="Case date")
    client: Optional[ClientData] = Field(None, alias="mandant")
    first_party: Optional[FirstParty] = Field(None, alias="erstPartei")
    second_party: Optional[SecondParty] = Field(None, alias="zweitPartei")
    damage: Optional[DamageData] = Field(None, alias="schaden")

    class Config:
        populate_by_name = True

class CaseUpdate(BaseModel):
    """Schema for updating an existing case; the document list is never writable here"""
    title: Optional[str] = Field(None, alias="fallname", min_length=1, max_length=200)
    file_number: Optional[str] = Field(None, alias="aktenzeichen", max_length=50)
    status: Optional[CaseStatus] = None
    case_date: Optional[datetime] = Field(None, alias="datum")
    client: Optional[ClientData] = Field(None, alias="mandant")
    first_party: Optional[FirstParty] = Field(None, alias="erstPartei")
    second_party: Optional[SecondParty] = Field(None, alias="zweitPartei")
    damage: Optional[DamageData] = Field(None, alias="schaden")
    privacy_accepted: Optional[bool] = Field(None, alias="datenschutzAngenommen")

    class Config:
        populate_by_name = True

    @model_validator(mode='before')
    @classmethod
    def drop_document_list(cls, data: Any) -> Any:
        """Discard any attempt to overwrite the case's documents"""
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if k not in ("dokumente", "documents")}
        return data

class NoteCreate(BaseModel):
    """Schema for adding a note to a case"""
    text: Optional[str] = Field(None, description="Note text")

class PrivacyUpdate(BaseModel):
    """Schema for the privacy-consent flag"""
    privacy_accepted: bool = Field(False, alias="datenschutzAngenommen")

    class Config:
        populate_by_name = True

class TransmissionRequest(BaseModel):
    """Schema for sending a case to the back office"""
    case_id: Optional[UUID] = Field(None, alias="fallId", description="ID of the case to transmit")

    class Config:
        populate_by_name = True

# Response schemas
class PersonSummary(BaseModel):
    """Short user reference embedded in case responses"""
    id: UUID
    vorname: Optional[str] = None
    nachname: Optional[str] = None
    email: Optional[str] = None

class NoteResponse(BaseModel):
    """Case note response"""
    id: UUID
    text: str
    created_by: Optional[UUID] = Field(None, alias="erstelltVon")
    created_at: Optional[datetime] = Field(None, alias="erstelltAm")

    class Config:
        populate_by_name = True

class CaseResponse(BaseModel):
    """Schema for case responses"""
    id: UUID
    title: str = Field(..., alias="fallname")
    file_number: str = Field(..., alias="aktenzeichen")
    practitioner_number: int = Field(..., alias="gutachterNummer")
    sequence_number: int = Field(..., alias="fallNummer")
    status: CaseStatus
    case_date: Optional[datetime] = Field(None, alias="datum")
    client: Optional[Dict[str, Any]] = Field(None, alias="mandant")
    first_party: Optional[Dict[str, Any]] = Field(None, alias="erstPartei")
    second_party: Optional[Dict[str, Any]] = Field(None, alias="zweitPartei")
    damage: Optional[Dict[str, Any]] = Field(None, alias="schaden")
    privacy_accepted: bool = Field(False, alias="datenschutzAngenommen")
    transmission_count: int = Field(0, alias="uebermittlungen")
    owner: Optional[PersonSummary] = Field(None, alias="erstelltVon")
    assignee: Optional[PersonSummary] = Field(None, alias="zugewiesenAn")
    documents: List[DocumentResponse] = Field(default_factory=list, alias="dokumente")
    notes: List[NoteResponse] = Field(default_factory=list, alias="notizen")
    created_at: Optional[datetime] = Field(None, alias="erstelltAm")
    updated_at: Optional[datetime] = Field(None, alias="letzteAktualisierung")

    class Config:
        populate_by_name = True

    @classmethod
    def from_case(cls, case) -> "CaseResponse":
        """Build a response from a loaded Case, relations included"""
        return cls(
            id=case.id,
            title=case.title,
            file_number=case.file_number,
            practitioner_number=case.practitioner_number,
            sequence_number=case.sequence_number,
            status=case.status,
            case_date=case.case_date,
            client=case.client_data,
            first_party=case.first_party,
            second_party=case.second_party,
            damage=case.damage,
            privacy_accepted=bool(case.privacy_accepted),
            transmission_count=case.transmission_count or 0,
            owner=_person(case.owner),
            assignee=_person(case.assignee),
            documents=[DocumentResponse.from_document(d) for d in case.documents or []],
            notes=[
                NoteResponse(id=n.id, text=n.text, created_by=n.created_by, created_at=n.created_at)
                for n in case.notes or []
            ],
            created_at=case.created_at,
            updated_at=case.updated_at
        )

def _person(user) -> Optional[PersonSummary]:
    if user is None:
        return None
    return PersonSummary(id=user.id, vorname=user.first_name, nachname=user.last_name, email=user.email)

class CaseEnvelope(BaseResponse):
    """Response wrapping a single case"""
    fall: CaseResponse

class TransmissionState(BaseModel):
    """Bookkeeping reported after a transmission"""
    status: CaseStatus
    transmission_count: int = Field(..., alias="uebermittlungen")

    class Config:
        populate_by_name = True

class TransmissionResponse(BaseResponse):
    """Response for a successful transmission"""
    fall: TransmissionState
