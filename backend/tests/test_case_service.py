"""
Tests for case intake, access rule and transmission bookkeeping
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from hypothesis import given, strategies as st, settings

from conftest import make_case, make_user
from core.exceptions import CaseManagementException, NotFoundError, PermissionError, ValidationError
from models.case import CaseStatus
from schemas.case import CaseCreate, CaseUpdate
from services.case_service import CaseService, generate_client_number, generate_file_number
from services.user_service import UserService

def _db(scalar=None):
    db = AsyncMock()
    db.add = MagicMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    db.execute = AsyncMock(return_value=result)
    return db

class TestNumberGeneration:

    @given(practitioner=st.integers(min_value=25001, max_value=99999), sequence=st.integers(min_value=1, max_value=999))
    @settings(deadline=1000)
    def test_file_and_client_numbers(self, practitioner, sequence):
        file_number = generate_file_number(practitioner, sequence)
        client_number = generate_client_number(sequence)

        assert file_number == f"GUT-{practitioner}-{sequence:02d}"
        assert client_number.startswith("MD-")
        assert len(client_number) == 9
        assert int(client_number[3:]) == 100 + sequence

    def test_examples(self):
        assert generate_file_number(25001, 3) == "GUT-25001-03"
        assert generate_client_number(1) == "MD-000101"

class TestSequenceNumbers:

    @pytest.mark.asyncio
    async def test_first_case_gets_one(self):
        service = CaseService(_db(scalar=None))
        assert await service.next_sequence_number(25001) == 1

    @pytest.mark.asyncio
    async def test_next_after_highest(self):
        service = CaseService(_db(scalar=7))
        assert await service.next_sequence_number(25001) == 8

    @pytest.mark.asyncio
    async def test_practitioner_numbers_start_at_base(self):
        assert await UserService(_db(scalar=None)).next_practitioner_number() == 25001
        assert await UserService(_db(scalar=25007)).next_practitioner_number() == 25008

class TestCreateCase:

    @pytest.mark.asyncio
    async def test_create_assigns_numbers_and_owner(self):
        db = _db()
        user = make_user()
        user_service = MagicMock()
        user_service.get_user = AsyncMock(return_value=user)
        service = CaseService(db, user_service)

        with patch.object(service, "next_sequence_number", AsyncMock(return_value=3)), \
             patch.object(service, "get_case_with_relations", AsyncMock(side_effect=lambda _id: db.add.call_args.args[0])):
            case = await service.create_case(
                CaseCreate.model_validate({"fallname": "Wildunfall", "mandant": {"vorname": "Erika"}}),
                user.id
            )

        assert case.file_number == "GUT-25001-03"
        assert case.sequence_number == 3
        assert case.practitioner_number == 25001
        assert case.client_data == {"vorname": "Erika", "mandantennummer": "MD-000103"}
        assert case.created_by == user.id
        assert case.assigned_to == user.id
        assert case.status == CaseStatus.OPEN
        assert case.transmission_count == 0
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_supplied_file_number_is_kept(self):
        db = _db()
        user_service = MagicMock()
        user_service.get_user = AsyncMock(return_value=make_user())
        service = CaseService(db, user_service)

        with patch.object(service, "next_sequence_number", AsyncMock(return_value=1)), \
             patch.object(service, "get_case_with_relations", AsyncMock(side_effect=lambda _id: db.add.call_args.args[0])):
            case = await service.create_case(
                CaseCreate(fallname="Glasschaden", aktenzeichen="AZ-77"),
                uuid4()
            )

        assert case.file_number == "AZ-77"

    @pytest.mark.asyncio
    async def test_user_without_practitioner_number_is_rejected(self):
        db = _db()
        user_service = MagicMock()
        user_service.get_user = AsyncMock(return_value=make_user(practitioner_number=None))
        service = CaseService(db, user_service)

        with pytest.raises(ValidationError):
            await service.create_case(CaseCreate(fallname="Test"), uuid4())

        db.rollback.assert_awaited_once()
        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_wrapped(self):
        db = _db()
        db.commit = AsyncMock(side_effect=RuntimeError("connection lost"))
        user_service = MagicMock()
        user_service.get_user = AsyncMock(return_value=make_user())
        service = CaseService(db, user_service)

        with patch.object(service, "next_sequence_number", AsyncMock(return_value=1)):
            with pytest.raises(CaseManagementException) as exc_info:
                await service.create_case(CaseCreate(fallname="Test"), uuid4())

        assert "connection lost" in exc_info.value.message
        db.rollback.assert_awaited_once()

class TestUpdateCase:

    def test_document_list_cannot_be_submitted(self):
        update = CaseUpdate.model_validate({"fallname": "Neu", "dokumente": ["x"], "documents": ["y"]})
        assert update.model_fields_set == {"title"}

    @pytest.mark.asyncio
    async def test_update_keeps_documents_and_client_number(self):
        case = make_case()
        documents_before = list(case.documents)
        db = _db()
        service = CaseService(db, MagicMock())

        with patch.object(service, "get_case_with_relations", AsyncMock(return_value=case)):
            updated = await service.update_case(
                case.id,
                CaseUpdate.model_validate({
                    "fallname": "Neuer Titel",
                    "mandant": {"vorname": "Eva"},
                    "schaden": {"schadenstyp": "Hagel"},
                    "dokumente": ["fremd"]
                })
            )

        assert updated.title == "Neuer Titel"
        assert updated.client_data == {"vorname": "Eva", "mandantennummer": "MD-000101"}
        assert updated.damage == {"schadenstyp": "Hagel"}
        assert list(updated.documents) == documents_before
        db.commit.assert_awaited_once()

class TestNotes:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   "])
    async def test_empty_note_is_rejected(self, text):
        db = _db()
        service = CaseService(db, MagicMock())

        with pytest.raises(ValidationError):
            await service.add_note(uuid4(), text, uuid4())

        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_note_is_added(self):
        case = make_case()
        db = _db()
        db.get = AsyncMock(return_value=case)
        service = CaseService(db, MagicMock())
        author = uuid4()

        with patch.object(service, "get_case_with_relations", AsyncMock(return_value=case)):
            await service.add_note(case.id, "Rückruf vereinbart", author)

        note = db.add.call_args.args[0]
        assert note.text == "Rückruf vereinbart"
        assert note.created_by == author
        assert note.case_id == case.id

    @pytest.mark.asyncio
    async def test_note_on_missing_case(self):
        db = _db()
        db.get = AsyncMock(return_value=None)
        service = CaseService(db, MagicMock())

        with pytest.raises(NotFoundError):
            await service.add_note(uuid4(), "Text", uuid4())

class TestTransmissionCounter:

    @pytest.mark.asyncio
    async def test_increment_commits_immediately(self):
        case = make_case(transmission_count=1, status=CaseStatus.TRANSMITTED)
        db = _db(scalar=case)
        service = CaseService(db, MagicMock())

        result = await service.increment_transmission_counter(case.id)

        assert result is case
        db.execute.assert_awaited_once()
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_increment_on_missing_case(self):
        db = _db(scalar=None)
        service = CaseService(db, MagicMock())

        with pytest.raises(NotFoundError):
            await service.increment_transmission_counter(uuid4())

        db.commit.assert_not_awaited()
        db.rollback.assert_awaited_once()

class TestAccessRule:

    def _case(self):
        owner, assignee = uuid4(), uuid4()
        return SimpleNamespace(id=uuid4(), created_by=owner, assigned_to=assignee), owner, assignee

    def test_admin_owner_and_assignee_pass(self):
        case, owner, assignee = self._case()
        CaseService.ensure_access(case, {"id": str(uuid4()), "role": "admin"})
        CaseService.ensure_access(case, {"id": str(owner), "role": "gutachter"})
        CaseService.ensure_access(case, {"id": str(assignee), "role": "gutachter"})

    def test_stranger_is_denied(self):
        case, _, _ = self._case()
        with pytest.raises(PermissionError):
            CaseService.ensure_access(case, {"id": str(uuid4()), "role": "gutachter"})

    def test_owner_only_excludes_assignee(self):
        case, owner, assignee = self._case()
        CaseService.ensure_access(case, {"id": str(owner), "role": "gutachter"}, owner_only=True)
        with pytest.raises(PermissionError):
            CaseService.ensure_access(case, {"id": str(assignee), "role": "gutachter"}, owner_only=True)
