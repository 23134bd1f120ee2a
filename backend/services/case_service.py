"""
Case management service: intake, notes, access rule and transmission bookkeeping
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.orm import selectinload
from typing import List, Dict, Any, Optional
from uuid import UUID
from datetime import datetime, UTC
import structlog

from models.case import Case, CaseNote, CaseStatus
from models.document import Document
from schemas.case import CaseCreate, CaseUpdate, dump_sub_record
from core.exceptions import CaseManagementException, NotFoundError, PermissionError, ValidationError
from core.auth import is_admin
from services.user_service import UserService

logger = structlog.get_logger()

# CaseUpdate field -> Case attribute for the JSON sub-records
SUB_RECORD_ATTRIBUTES = {
    "client": "client_data",
    "first_party": "first_party",
    "second_party": "second_party",
    "damage": "damage",
}

def generate_file_number(practitioner_number: int, sequence_number: int) -> str:
    return f"GUT-{practitioner_number}-{sequence_number:02d}"

def generate_client_number(sequence_number: int) -> str:
    return f"MD-{100 + sequence_number:06d}"

class CaseService:
    """Service for case management operations"""

    def __init__(self, db: AsyncSession, user_service: Optional[UserService] = None):
        self.db = db
        self.user_service = user_service or UserService(db)

    def _not_found(self, case_id: UUID) -> NotFoundError:
        return NotFoundError("Fall nicht gefunden", error_code="CASE_NOT_FOUND", details={"case_id": str(case_id)})

    async def get_case(self, case_id: UUID) -> Case:
        """Get a case row without relations; raises NotFoundError if absent"""
        case = await self.db.get(Case, case_id)
        if case is None:
            raise self._not_found(case_id)
        return case

    async def get_case_with_relations(self, case_id: UUID) -> Case:
        """
        Get a case with owner, assignee, documents and notes loaded

        Args:
            case_id: Case UUID

        Returns:
            Case instance

        Raises:
            NotFoundError: If the case does not exist
        """
        try:
            result = await self.db.execute(
                select(Case)
                .options(
                    selectinload(Case.owner),
                    selectinload(Case.assignee),
                    selectinload(Case.documents),
                    selectinload(Case.notes)
                )
                .where(Case.id == case_id)
            )
            case = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Failed to get case", case_id=str(case_id), error=str(e))
            raise CaseManagementException(f"Failed to retrieve case: {str(e)}") from e

        if case is None:
            raise self._not_found(case_id)
        return case

    async def list_documents(self, case_id: UUID) -> List[Document]:
        """Documents of a case in upload order"""
        result = await self.db.execute(
            select(Document)
            .where(Document.case_id == case_id)
            .order_by(Document.uploaded_at.asc())
        )
        return list(result.scalars().all())

    async def increment_transmission_counter(self, case_id: UUID) -> Case:
        """
        Atomically bump the transmission counter and mark the case transmitted

        A single UPDATE ... RETURNING, committed immediately, so concurrent
        transmissions never lose an increment.

        Raises:
            NotFoundError: If the case does not exist
        """
        try:
            result = await self.db.execute(
                update(Case)
                .where(Case.id == case_id)
                .values(
                    transmission_count=Case.transmission_count + 1,
                    status=CaseStatus.TRANSMITTED,
                    updated_at=func.now()
                )
                .returning(Case)
                .execution_options(populate_existing=True)
            )
            case = result.scalar_one_or_none()
            if case is None:
                raise self._not_found(case_id)

            await self.db.commit()

            logger.info(
                "Transmission counter incremented",
                case_id=str(case_id),
                transmission_count=case.transmission_count
            )
            return case

        except Exception as e:
            await self.db.rollback()
            if isinstance(e, CaseManagementException):
                raise
            logger.error("Failed to increment transmission counter", case_id=str(case_id), error=str(e))
            raise CaseManagementException(f"Failed to update transmission counter: {str(e)}") from e

    async def next_sequence_number(self, practitioner_number: int) -> int:
        """Highest sequence number of this practitioner + 1, or 1 for the first case"""
        result = await self.db.execute(
            select(func.max(Case.sequence_number))
            .where(Case.practitioner_number == practitioner_number)
        )
        highest = result.scalar_one_or_none()
        return (highest or 0) + 1

    async def create_case(self, case_data: CaseCreate, created_by: UUID) -> Case:
        """
        Create a new case owned by and assigned to the creating practitioner

        Args:
            case_data: Case creation data
            created_by: UUID of the user creating the case

        Returns:
            Created case with relations loaded

        Raises:
            ValidationError: If the user has no practitioner number
        """
        try:
            user = await self.user_service.get_user(created_by)
            practitioner_number = user.practitioner_number
            if practitioner_number is None:
                raise ValidationError(
                    "Benutzer hat keine Gutachternummer",
                    error_code="PRACTITIONER_NUMBER_MISSING",
                    details={"user_id": str(created_by)}
                )

            sequence_number = await self.next_sequence_number(practitioner_number)

            client = dump_sub_record(case_data.client) or {}
            client["mandantennummer"] = generate_client_number(sequence_number)

            case = Case(
                title=case_data.title,
                file_number=case_data.file_number or generate_file_number(practitioner_number, sequence_number),
                practitioner_number=practitioner_number,
                sequence_number=sequence_number,
                status=case_data.status or CaseStatus.OPEN,
                case_date=case_data.case_date or datetime.now(UTC),
                client_data=client,
                first_party=dump_sub_record(case_data.first_party),
                second_party=dump_sub_record(case_data.second_party),
                damage=dump_sub_record(case_data.damage),
                privacy_accepted=False,
                transmission_count=0,
                created_by=created_by,
                assigned_to=created_by
            )

            self.db.add(case)
            await self.db.commit()

            logger.info(
                "Case created successfully",
                case_id=str(case.id),
                file_number=case.file_number,
                sequence_number=sequence_number
            )
            return await self.get_case_with_relations(case.id)

        except Exception as e:
            await self.db.rollback()
            if isinstance(e, CaseManagementException):
                raise
            logger.error("Failed to create case", error=str(e))
            raise CaseManagementException(f"Failed to create case: {str(e)}") from e

    async def update_case(self, case_id: UUID, case_data: CaseUpdate) -> Case:
        """
        Apply the provided fields to a case

        The document list is not part of CaseUpdate and therefore never
        overwritten here. A replaced client record keeps its client number.
        """
        try:
            case = await self.get_case_with_relations(case_id)

            for field_name in case_data.model_fields_set:
                value = getattr(case_data, field_name)
                if field_name in SUB_RECORD_ATTRIBUTES:
                    record = dump_sub_record(value)
                    if field_name == "client" and record is not None:
                        existing = case.client_data or {}
                        if existing.get("mandantennummer") and not record.get("mandantennummer"):
                            record["mandantennummer"] = existing["mandantennummer"]
                    setattr(case, SUB_RECORD_ATTRIBUTES[field_name], record)
                elif value is not None:
                    setattr(case, field_name, value)

            case.updated_at = datetime.now(UTC)
            await self.db.commit()

            logger.info("Case updated successfully", case_id=str(case_id), fields=sorted(case_data.model_fields_set))
            return await self.get_case_with_relations(case_id)

        except Exception as e:
            await self.db.rollback()
            if isinstance(e, CaseManagementException):
                raise
            logger.error("Failed to update case", case_id=str(case_id), error=str(e))
            raise CaseManagementException(f"Failed to update case: {str(e)}") from e

    async def add_note(self, case_id: UUID, text: Optional[str], created_by: UUID) -> Case:
        """
        Append a note to a case

        Raises:
            ValidationError: If the note text is empty
            NotFoundError: If the case does not exist
        """
        if not text or not text.strip():
            raise ValidationError("Notiztext ist erforderlich", error_code="NOTE_TEXT_REQUIRED")

        try:
            case = await self.get_case(case_id)

            self.db.add(CaseNote(case_id=case.id, text=text, created_by=created_by))
            case.updated_at = datetime.now(UTC)
            await self.db.commit()

            logger.info("Note added to case", case_id=str(case_id), created_by=str(created_by))
            return await self.get_case_with_relations(case_id)

        except Exception as e:
            await self.db.rollback()
            if isinstance(e, CaseManagementException):
                raise
            logger.error("Failed to add note", case_id=str(case_id), error=str(e))
            raise CaseManagementException(f"Failed to add note: {str(e)}") from e

    async def set_privacy_accepted(self, case_id: UUID, accepted: bool) -> Case:
        try:
            case = await self.get_case_with_relations(case_id)
            case.privacy_accepted = bool(accepted)
            case.updated_at = datetime.now(UTC)
            await self.db.commit()

            logger.info("Privacy status updated", case_id=str(case_id), accepted=bool(accepted))
            return case

        except Exception as e:
            await self.db.rollback()
            if isinstance(e, CaseManagementException):
                raise
            logger.error("Failed to update privacy status", case_id=str(case_id), error=str(e))
            raise CaseManagementException(f"Failed to update privacy status: {str(e)}") from e

    async def delete_case(self, case_id: UUID) -> None:
        """Delete a case; its notes and document records go with it"""
        try:
            case = await self.get_case(case_id)
            await self.db.delete(case)
            await self.db.commit()
            logger.info("Case deleted", case_id=str(case_id))

        except Exception as e:
            await self.db.rollback()
            if isinstance(e, CaseManagementException):
                raise
            logger.error("Failed to delete case", case_id=str(case_id), error=str(e))
            raise CaseManagementException(f"Failed to delete case: {str(e)}") from e

    @staticmethod
    def ensure_access(case: Case, current_user: Dict[str, Any], owner_only: bool = False) -> None:
        """
        Admins may access every case; others only cases they own or are assigned to

        Args:
            case: Case to check
            current_user: Token payload with "id" and "role"
            owner_only: Only the owner (or an admin) passes, e.g. for deletion

        Raises:
            PermissionError: If the user may not access the case
        """
        if is_admin(current_user):
            return

        user_id = str(current_user.get("id"))
        if case.created_by is not None and str(case.created_by) == user_id:
            return
        if not owner_only and case.assigned_to is not None and str(case.assigned_to) == user_id:
            return

        raise PermissionError(
            "Keine Berechtigung für diesen Fall",
            error_code="CASE_ACCESS_DENIED",
            details={"case_id": str(case.id)}
        )
