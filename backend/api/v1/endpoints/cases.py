"""
Case endpoints: intake, notes, privacy flag and transmission
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Any
from uuid import UUID

from core.auth import get_current_user
from core.database import get_db
from core.exceptions import ValidationError
from schemas.base import BaseResponse
from schemas.case import (
    CaseCreate, CaseUpdate, NoteCreate, PrivacyUpdate, CaseResponse, CaseEnvelope,
    TransmissionRequest, TransmissionResponse, TransmissionState
)
from services.case_service import CaseService
from services.transmission_service import TransmissionService

router = APIRouter()

async def get_case_service(db: AsyncSession = Depends(get_db)) -> CaseService:
    """Dependency to get case service instance"""
    return CaseService(db)

async def get_transmission_service(
    case_service: CaseService = Depends(get_case_service)
) -> TransmissionService:
    """Dependency to get transmission service instance"""
    return TransmissionService(case_service)

@router.post("/send", response_model=TransmissionResponse)
async def send_case(
    request: TransmissionRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    transmission_service: TransmissionService = Depends(get_transmission_service)
):
    """
    Send a case to the back office and a confirmation to its practitioner

    - **fallId**: ID of the case to send
    """
    if request.case_id is None:
        raise ValidationError("Fall-ID fehlt.", error_code="CASE_ID_MISSING")

    result = await transmission_service.send_case(request.case_id, current_user)
    return TransmissionResponse(
        nachricht="Fall wurde gesendet.",
        fall=TransmissionState(status=result.status, transmission_count=result.transmission_count)
    )

@router.post("", response_model=CaseEnvelope, status_code=status.HTTP_201_CREATED)
async def create_case(
    case_data: CaseCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    case_service: CaseService = Depends(get_case_service)
):
    """
    Create a new case

    - **fallname**: Case name
    - **aktenzeichen**: Optional case-file number, generated when omitted
    - **mandant**, **erstPartei**, **zweitPartei**, **schaden**: Optional sub-records
    """
    case = await case_service.create_case(case_data, UUID(str(current_user["id"])))
    return CaseEnvelope(nachricht="Fall erfolgreich erstellt", fall=CaseResponse.from_case(case))

@router.get("/{case_id}", response_model=CaseEnvelope)
async def get_case(
    case_id: UUID,
    current_user: Dict[str, Any] = Depends(get_current_user),
    case_service: CaseService = Depends(get_case_service)
):
    """Get a specific case by ID"""
    case = await case_service.get_case_with_relations(case_id)
    case_service.ensure_access(case, current_user)
    return CaseEnvelope(fall=CaseResponse.from_case(case))

@router.put("/{case_id}", response_model=CaseEnvelope)
async def update_case(
    case_id: UUID,
    case_data: CaseUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    case_service: CaseService = Depends(get_case_service)
):
    """Update the provided fields of a case; documents cannot be changed here"""
    case_service.ensure_access(await case_service.get_case(case_id), current_user)
    case = await case_service.update_case(case_id, case_data)
    return CaseEnvelope(nachricht="Fall erfolgreich aktualisiert", fall=CaseResponse.from_case(case))

@router.delete("/{case_id}", response_model=BaseResponse)
async def delete_case(
    case_id: UUID,
    current_user: Dict[str, Any] = Depends(get_current_user),
    case_service: CaseService = Depends(get_case_service)
):
    """Delete a case (owner or admin only)"""
    case_service.ensure_access(await case_service.get_case(case_id), current_user, owner_only=True)
    await case_service.delete_case(case_id)
    return BaseResponse(nachricht="Fall erfolgreich gelöscht")

@router.post("/{case_id}/notes", response_model=CaseEnvelope, status_code=status.HTTP_201_CREATED)
async def add_case_note(
    case_id: UUID,
    note: NoteCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    case_service: CaseService = Depends(get_case_service)
):
    """Add a note to a case"""
    case_service.ensure_access(await case_service.get_case(case_id), current_user)
    case = await case_service.add_note(case_id, note.text, UUID(str(current_user["id"])))
    return CaseEnvelope(nachricht="Notiz erfolgreich hinzugefügt", fall=CaseResponse.from_case(case))

@router.patch("/{case_id}/datenschutz", response_model=CaseEnvelope)
async def update_privacy(
    case_id: UUID,
    privacy: PrivacyUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    case_service: CaseService = Depends(get_case_service)
):
    """Set whether the client accepted the privacy policy"""
    case_service.ensure_access(await case_service.get_case(case_id), current_user)
    case = await case_service.set_privacy_accepted(case_id, privacy.privacy_accepted)
    return CaseEnvelope(nachricht="Datenschutzstatus aktualisiert", fall=CaseResponse.from_case(case))
